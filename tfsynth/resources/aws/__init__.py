"""AWS resource kinds."""

import logging

from tfsynth.core.registry import ResourceRegistry

from .api_gateway_integration import ApiGatewayIntegration
from .api_gateway_method import ApiGatewayMethod
from .api_gateway_rest_api import ApiGatewayRestApi
from .autoscaling_group import AutoScalingGroup
from .ce_cost_category import CostCategory
from .ecr_repository import EcrRepository
from .iam_policy import IamPolicy
from .instance import Instance
from .lambda_permission import LambdaPermission
from .launch_template import LaunchTemplate
from .networking import (
    Eip,
    InternetGateway,
    NatGateway,
    RouteTable,
    RouteTableAssociation,
    Subnet,
    Vpc,
)

logger = logging.getLogger(__name__)

AWS_RESOURCE_KINDS = (
    # Compute and containers
    EcrRepository,
    Instance,
    LaunchTemplate,
    AutoScalingGroup,
    # Identity and invocation
    IamPolicy,
    LambdaPermission,
    # API Gateway
    ApiGatewayRestApi,
    ApiGatewayMethod,
    ApiGatewayIntegration,
    # Billing
    CostCategory,
    # Networking
    Vpc,
    Subnet,
    InternetGateway,
    Eip,
    NatGateway,
    RouteTable,
    RouteTableAssociation,
)


def register_aws_resources(registry: ResourceRegistry) -> None:
    """Register every AWS resource kind."""
    logger.info("Registering AWS resource kinds...")
    for kind in AWS_RESOURCE_KINDS:
        registry.register(kind())
    logger.info(f"Registered {len(AWS_RESOURCE_KINDS)} AWS resource kinds")


__all__ = [
    "AWS_RESOURCE_KINDS",
    "ApiGatewayIntegration",
    "ApiGatewayMethod",
    "ApiGatewayRestApi",
    "AutoScalingGroup",
    "CostCategory",
    "EcrRepository",
    "Eip",
    "IamPolicy",
    "Instance",
    "InternetGateway",
    "LambdaPermission",
    "LaunchTemplate",
    "NatGateway",
    "RouteTable",
    "RouteTableAssociation",
    "Subnet",
    "Vpc",
    "register_aws_resources",
]
