"""
Failures raised while talking to catalog providers.

Adapters raise these; the population layer catches them per set or per call
and turns them into entries of a result's ``errors`` list. A failure inside a
loop (one set, one card batch) is recorded and the loop moves on.
"""


class IngestionError(Exception):
    """Base class for provider failures."""

    pass


class RateLimitedError(IngestionError):
    """Provider answered HTTP 429."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__("Rate limit exceeded. Please wait before retrying.")


class UpstreamError(IngestionError):
    """Provider answered with a non-2xx status other than 429."""

    def __init__(self, status_code: int, reason: str, url: str = "") -> None:
        self.status_code = status_code
        self.reason = reason
        self.url = url
        super().__init__(f"API error: {status_code} {reason}".rstrip())


class MalformedResponseError(IngestionError):
    """Response body could not be decoded as JSON."""

    pass


class SetResolutionError(IngestionError):
    """A set code could not be turned into the name a provider searches by."""

    def __init__(self, set_id: str, attempted_name: str | None = None) -> None:
        self.set_id = set_id
        self.attempted_name = attempted_name
        if attempted_name:
            message = f"No cards found for set {set_id} using set name '{attempted_name}'"
        else:
            message = f"Could not resolve a set name for set {set_id}; populate sets first"
        super().__init__(message)
