"""Exception hierarchy for ReviewInsight."""


class ReviewInsightError(Exception):
    """Base class for all ReviewInsight errors."""


class FetchError(ReviewInsightError):
    """Review source failure. Fatal to the current request."""


class InputValidationError(ReviewInsightError):
    """Empty or malformed input, rejected before any processing."""


class ClassificationError(ReviewInsightError):
    """External classification call failed (transport, quota, empty reply)."""


class ResponseParseError(ClassificationError):
    """External classification reply could not be decoded into the expected shape."""


class OperationTimeout(ReviewInsightError):
    """A bounded operation did not finish before its deadline."""

    def __init__(self, name: str, timeout: float):
        self.name = name
        self.timeout = timeout
        super().__init__(f"{name} timed out after {timeout:g} seconds")
