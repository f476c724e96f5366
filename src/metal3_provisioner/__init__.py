"""metal3_provisioner - render and reconcile the metal3 provisioning workload."""

from metal3_provisioner.__version__ import __version__

__all__ = ["__version__"]
