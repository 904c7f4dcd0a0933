"""Core domain package for borderadar.

Core contains relevance filtering, deduplication, sector detection and the
alert pipeline without any feed, Telegram or storage-specific code, keeping
the business logic portable.
"""
