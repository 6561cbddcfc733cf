"""wavecli - terminal HTTP client with YAML request collections."""

__version__ = "0.1.0"
