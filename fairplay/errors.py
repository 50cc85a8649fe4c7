# fairplay/errors.py
"""
Error taxonomy for the scan-and-patch pipeline.

Scanning absorbs per-chunk ModelError/ParseFailed internally and only raises
AllAttemptsFailed. Apply/revert errors are scoped to one modification record.
"""


class FairPlayError(Exception):
    """Base class for pipeline errors."""

    pass


class ConfigMissing(FairPlayError):
    """The category taxonomy could not be loaded. Fatal at startup."""

    pass


class ModelError(FairPlayError):
    """The model call failed or returned something unusable."""

    pass


class ModelUnavailable(ModelError):
    """The local model server is not reachable or not ready."""

    pass


class ParseFailed(FairPlayError):
    """The model's scan response could not be decoded."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Failed to parse LLM response: {detail}")


class AllAttemptsFailed(FairPlayError):
    """Every configured chunk budget failed. Carries the most recent error."""

    def __init__(self, last: Exception | None = None):
        self.last = last
        if last is None:
            message = "All scan attempts failed"
        else:
            message = f"All scan attempts failed: {last}"
        super().__init__(message)


class ApplyFailed(FairPlayError):
    """A generated fix could not be applied to the document."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class RevertFailed(FairPlayError):
    """The pristine document could not be restored."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Failed to revert: {detail}")


class StaleEpochError(FairPlayError):
    """A result arrived after its page was superseded by a navigation."""

    pass
