"""Idempotent provisioning of SquareScale projects through the sqsc CLI."""

__version__ = "0.1.0"
