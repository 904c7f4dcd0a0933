"""Exceptions raised by adapters and converted at the core seams."""

from __future__ import annotations


class BorderadarError(Exception):
    """Base class for all borderadar errors."""


class FeedError(BorderadarError):
    """A feed could not be fetched or parsed."""


class StoreError(BorderadarError):
    """The remote state document could not be read or written."""


class NotifyError(BorderadarError):
    """The notification channel rejected or failed a message."""
