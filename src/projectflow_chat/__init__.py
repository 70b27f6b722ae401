"""ProjectFlow real-time chat and encrypted message service."""

__version__ = "1.0.0"
