"""Smart Mailbox: document analysis and folder organization service."""

__version__ = "1.0.0"
