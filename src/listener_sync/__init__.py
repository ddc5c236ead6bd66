"""Event listener registration sync for serverless app deployments."""

__version__ = "0.1.0"
