"""Courier: drive a coding agent from chat and ship its changes as pull requests."""

__version__ = "0.1.0"

__all__ = ["__version__"]
