"""Ready-made IAM policy documents for common access patterns."""

from typing import Any

PolicyDocument = dict[str, Any]


def _document(*statements: dict[str, Any]) -> PolicyDocument:
    return {"Version": "2012-10-17", "Statement": list(statements)}


def _allow(actions: list[str], resources: list[str] | str) -> dict[str, Any]:
    return {"Effect": "Allow", "Action": actions, "Resource": resources}


def s3_bucket_readonly(bucket_name: str) -> PolicyDocument:
    return _document(
        _allow(
            ["s3:GetObject", "s3:GetObjectVersion"],
            [f"arn:aws:s3:::{bucket_name}/*"],
        ),
        _allow(["s3:ListBucket"], [f"arn:aws:s3:::{bucket_name}"]),
    )


def s3_bucket_fullaccess(bucket_name: str) -> PolicyDocument:
    return _document(
        _allow(
            ["s3:*"],
            [f"arn:aws:s3:::{bucket_name}", f"arn:aws:s3:::{bucket_name}/*"],
        )
    )


def cloudwatch_logs_write() -> PolicyDocument:
    return _document(
        _allow(
            [
                "logs:CreateLogGroup",
                "logs:CreateLogStream",
                "logs:PutLogEvents",
                "logs:DescribeLogGroups",
                "logs:DescribeLogStreams",
            ],
            ["arn:aws:logs:*:*:*"],
        )
    )


def lambda_basic_execution() -> PolicyDocument:
    return _document(
        _allow(
            ["logs:CreateLogGroup", "logs:CreateLogStream", "logs:PutLogEvents"],
            ["arn:aws:logs:*:*:*"],
        )
    )


def kms_decrypt(key_arn: str) -> PolicyDocument:
    return _document(_allow(["kms:Decrypt", "kms:DescribeKey"], [key_arn]))


def ssm_parameter_read(path_prefix: str) -> PolicyDocument:
    """Read access to every parameter below ``path_prefix`` (e.g. ``/myapp/``)."""
    prefix = path_prefix.strip("/")
    return _document(
        _allow(
            ["ssm:GetParameter", "ssm:GetParameters", "ssm:GetParametersByPath"],
            [f"arn:aws:ssm:*:*:parameter/{prefix}/*"],
        )
    )
