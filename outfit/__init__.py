"""outfit — ship recipes and a pinned engine to a host, then run them."""

__version__ = "0.1.0"
