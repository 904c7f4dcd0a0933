"""Adapters that connect the core pipeline to feeds, Telegram and storage."""
