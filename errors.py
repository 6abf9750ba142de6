"""Exceptions raised by the Prism pipeline.

Most failures are recovered where they happen (per source, per feed
entry). Only the aggregate "nothing came back" condition is raised to
the caller.
"""


class PrismError(Exception):
    """Base class for pipeline errors."""


class NoArticlesError(PrismError):
    """No configured source produced any article."""

    def __init__(self, source_count: int):
        self.source_count = source_count
        super().__init__(
            f"No source produced data ({source_count} sources tried). "
            "Check your internet connection."
        )


class FeedDecodeError(PrismError):
    """Feed payload could not be decoded as text."""
