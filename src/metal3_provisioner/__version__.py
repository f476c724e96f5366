"""Version information for metal3_provisioner."""

__version__ = "0.1.0"
