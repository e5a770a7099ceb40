"""Live UUID marker links between text documents."""

__version__ = "0.1.0"
