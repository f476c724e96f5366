"""Logging configuration for metal3_provisioner."""

from metal3_provisioner.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
