"""Property and news ingestion backend with a Telegram bot."""

__version__ = "1.0.0"
