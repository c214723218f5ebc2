"""contentlist - catalog directory trees into portable manifests."""

__version__ = "0.1.0"
