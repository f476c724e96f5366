"""Command-line interface for the metal3 provisioner."""
