"""Options trading journal with trade analytics."""

__version__ = "0.1.0"
