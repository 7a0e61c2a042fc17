"""modelsync - reconcile local model configuration with a remote server."""

__version__ = "0.1.0"
