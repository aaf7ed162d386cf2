"""Validated Terraform JSON synthesis."""

__version__ = "0.1.0"
