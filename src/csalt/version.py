"""Single source of truth for the csalt version string."""

__version__: str = "1.3.0"
