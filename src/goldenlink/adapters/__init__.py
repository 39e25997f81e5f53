"""Adapters connecting the MDM domain to storage and wire formats."""
