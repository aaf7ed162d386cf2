"""Core contracts, exceptions and the resource registry."""
