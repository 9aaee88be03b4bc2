"""Session token authentication service for the storefront API."""

__version__ = "1.0.0"
