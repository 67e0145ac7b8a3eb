"""Client and server building blocks for a smart-home application."""

__version__ = "1.0.0"