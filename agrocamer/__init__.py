"""AgroCamer backend: plant and harvest analysis, chat and weather for Cameroon farmers."""

__version__ = "0.1.0"
