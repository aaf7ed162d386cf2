"""Unit tests for the vpc_with_subnets composition."""

import logging

import pytest

from tfsynth.composition import CompositeVpcReference, subnet_cidrs, vpc_with_subnets
from tfsynth.core.exceptions import ConstraintViolation
from tfsynth.core.registry import create_default_registry
from tfsynth.synthesis.session import SynthesisSession

ZONES = ["us-east-1a", "us-east-1b"]


@pytest.fixture
def session() -> SynthesisSession:
    return SynthesisSession(create_default_registry())


def _resources(session: SynthesisSession, resource_type: str) -> dict:
    return session.document.get("resource", resource_type) or {}


class TestSubnetCidrs:
    def test_four_subnets(self) -> None:
        assert subnet_cidrs("10.0.0.0/16", 4) == [
            "10.0.0.0/18",
            "10.0.64.0/18",
            "10.0.128.0/18",
            "10.0.192.0/18",
        ]

    def test_two_subnets(self) -> None:
        assert subnet_cidrs("10.0.0.0/16", 2) == ["10.0.0.0/17", "10.0.128.0/17"]

    def test_count_rounded_up_to_power_of_two(self) -> None:
        assert subnet_cidrs("10.0.0.0/16", 3) == [
            "10.0.0.0/18",
            "10.0.64.0/18",
            "10.0.128.0/18",
        ]

    def test_single_subnet_keeps_block(self) -> None:
        assert subnet_cidrs("10.0.0.0/24", 1) == ["10.0.0.0/24"]

    def test_host_bits_ignored(self) -> None:
        assert subnet_cidrs("10.0.5.0/16", 2)[0] == "10.0.0.0/17"

    def test_too_small(self) -> None:
        with pytest.raises(ConstraintViolation, match="too small for 8 subnets"):
            subnet_cidrs("10.0.0.0/26", 8)

    def test_interpolation_cannot_be_carved(self) -> None:
        with pytest.raises(ConstraintViolation, match="Cannot derive subnet CIDRs"):
            subnet_cidrs("${var.vpc_cidr}", 2)


class TestComposition:
    def test_declares_two_tier_network(self, session: SynthesisSession) -> None:
        result = vpc_with_subnets(session, "app", "10.0.0.0/16", ZONES)

        assert isinstance(result, CompositeVpcReference)
        assert len(result.public_subnets) == 2
        assert len(result.private_subnets) == 2
        assert len(result.elastic_ips) == 2
        assert len(result.nat_gateways) == 2
        assert len(result.private_route_tables) == 2
        assert len(result.route_table_associations) == 4
        assert len(result.all_resources) == 1 + 1 + 4 + 4 + 1 + 2 + 4

        assert result.vpc_id == "${aws_vpc.app_vpc.id}"
        assert result.public_subnet_ids == [
            "${aws_subnet.app_public_subnet_0.id}",
            "${aws_subnet.app_public_subnet_1.id}",
        ]
        assert result.private_subnet_ids == [
            "${aws_subnet.app_private_subnet_0.id}",
            "${aws_subnet.app_private_subnet_1.id}",
        ]

    def test_subnet_blocks(self, session: SynthesisSession) -> None:
        vpc_with_subnets(session, "app", "10.0.0.0/16", ZONES)
        subnets = _resources(session, "aws_subnet")

        assert subnets["app_public_subnet_0"]["cidr_block"] == "10.0.0.0/18"
        assert subnets["app_public_subnet_1"]["cidr_block"] == "10.0.64.0/18"
        assert subnets["app_private_subnet_0"]["cidr_block"] == "10.0.128.0/18"
        assert subnets["app_private_subnet_1"]["cidr_block"] == "10.0.192.0/18"

        public = subnets["app_public_subnet_1"]
        assert public["availability_zone"] == "us-east-1b"
        assert public["map_public_ip_on_launch"] is True
        assert public["tags"] == {"Name": "app-public-1", "Type": "public"}
        assert subnets["app_private_subnet_0"]["map_public_ip_on_launch"] is False

    def test_single_zone(self, session: SynthesisSession) -> None:
        vpc_with_subnets(session, "app", "10.0.0.0/16", ["us-east-1a"])
        subnets = _resources(session, "aws_subnet")
        assert subnets["app_public_subnet_0"]["cidr_block"] == "10.0.0.0/17"
        assert subnets["app_private_subnet_0"]["cidr_block"] == "10.0.128.0/17"

    def test_explicit_cidrs_win(self, session: SynthesisSession) -> None:
        vpc_with_subnets(
            session,
            "app",
            "10.0.0.0/16",
            ZONES,
            public_subnet_cidrs=["10.0.1.0/24"],
            private_subnet_cidrs=["10.0.11.0/24", "10.0.12.0/24"],
        )
        subnets = _resources(session, "aws_subnet")
        assert subnets["app_public_subnet_0"]["cidr_block"] == "10.0.1.0/24"
        assert subnets["app_public_subnet_1"]["cidr_block"] == "10.0.64.0/18"
        assert subnets["app_private_subnet_0"]["cidr_block"] == "10.0.11.0/24"
        assert subnets["app_private_subnet_1"]["cidr_block"] == "10.0.12.0/24"

    def test_interpolated_vpc_with_explicit_cidrs(self, session: SynthesisSession) -> None:
        vpc_with_subnets(
            session,
            "app",
            "${var.vpc_cidr}",
            ["us-east-1a"],
            public_subnet_cidrs=["10.0.1.0/24"],
            private_subnet_cidrs=["10.0.2.0/24"],
        )
        vpc = session.document.get("resource", "aws_vpc", "app_vpc")
        assert vpc["cidr_block"] == "${var.vpc_cidr}"

    def test_routing(self, session: SynthesisSession) -> None:
        vpc_with_subnets(session, "app", "10.0.0.0/16", ZONES)
        tables = _resources(session, "aws_route_table")
        assert tables["app_public_rt"]["route"] == [
            {"cidr_block": "0.0.0.0/0", "gateway_id": "${aws_internet_gateway.app_igw.id}"}
        ]
        assert tables["app_private_rt_1"]["route"] == [
            {"cidr_block": "0.0.0.0/0", "nat_gateway_id": "${aws_nat_gateway.app_nat_1.id}"}
        ]

        associations = _resources(session, "aws_route_table_association")
        assert associations["app_public_rta_0"] == {
            "route_table_id": "${aws_route_table.app_public_rt.id}",
            "subnet_id": "${aws_subnet.app_public_subnet_0.id}",
        }
        assert associations["app_private_rta_1"] == {
            "route_table_id": "${aws_route_table.app_private_rt_1.id}",
            "subnet_id": "${aws_subnet.app_private_subnet_1.id}",
        }

    def test_nat_gateways_use_elastic_ips(self, session: SynthesisSession) -> None:
        vpc_with_subnets(session, "app", "10.0.0.0/16", ZONES)
        nat = session.document.get("resource", "aws_nat_gateway", "app_nat_0")
        assert nat["allocation_id"] == "${aws_eip.app_nat_eip_0.id}"
        assert nat["subnet_id"] == "${aws_subnet.app_public_subnet_0.id}"
        eip = session.document.get("resource", "aws_eip", "app_nat_eip_0")
        assert eip["domain"] == "vpc"

    def test_tag_overrides(self, session: SynthesisSession) -> None:
        vpc_with_subnets(
            session,
            "app",
            "10.0.0.0/16",
            ["us-east-1a"],
            vpc_tags={"Environment": "prod"},
            private_subnet_tags={"Type": "isolated"},
        )
        vpc = session.document.get("resource", "aws_vpc", "app_vpc")
        assert vpc["tags"] == {"Name": "app-vpc", "Environment": "prod"}
        private = session.document.get("resource", "aws_subnet", "app_private_subnet_0")
        assert private["tags"]["Type"] == "isolated"

    def test_requires_zones(self, session: SynthesisSession) -> None:
        with pytest.raises(ConstraintViolation, match="At least one availability zone"):
            vpc_with_subnets(session, "app", "10.0.0.0/16", [])
        assert session.document.is_empty()

    def test_to_dict(self, session: SynthesisSession) -> None:
        result = vpc_with_subnets(session, "app", "10.0.0.0/16", ["us-east-1a"])
        summary = result.to_dict()
        assert summary["name_prefix"] == "app"
        assert summary["vpc_id"] == "${aws_vpc.app_vpc.id}"
        assert summary["resources"][:2] == ["aws_vpc.app_vpc", "aws_internet_gateway.app_igw"]
        assert len(summary["resources"]) == len(result.all_resources)

    def test_logs_progress(
        self, session: SynthesisSession, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.INFO, logger="tfsynth.composition")
        vpc_with_subnets(session, "app", "10.0.0.0/16", ["us-east-1a"])
        messages = [r.message for r in caplog.records]
        assert any("Composing VPC 'app'" in m for m in messages)
        assert "Composed VPC 'app' with 10 resources" in messages

    def test_through_session(self, session: SynthesisSession) -> None:
        result = session.compose(
            "vpc_with_subnets",
            "edge",
            vpc_cidr="10.1.0.0/16",
            availability_zones=["eu-west-1a"],
        )
        assert result.vpc_id == "${aws_vpc.edge_vpc.id}"
        assert session.reference("aws_nat_gateway", "edge_nat_0") is result.nat_gateways[0]
