"""Exceptions raised by the analyser."""


class FetchError(Exception):
    """The page could not be retrieved (network error, timeout, DNS failure)."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class EmptyBatchError(ValueError):
    """Aggregation was requested over zero site records."""


# Name used by callers that think of the batch as generic input
EmptyInputError = EmptyBatchError


class RuleLoadError(ValueError):
    """A rule or checklist file contains an invalid entry."""
