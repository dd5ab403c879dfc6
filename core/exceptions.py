"""
Exception types raised along the analysis request path.

Each carries the user-facing message; the internal cause is only logged.
"""


class AnalysisError(Exception):
    """Base class for errors surfaced to the caller"""

    status_code = 500
    user_message = (
        "The page could not be analyzed. Is the URL correct and publicly reachable?"
    )

    def __init__(self, message: str = None):
        super().__init__(message or self.user_message)


class InvalidURLError(AnalysisError):
    """Raised when the submitted URL is missing or cannot be parsed"""

    status_code = 400
    user_message = "Please enter a valid URL."


class RateLimitExceededError(AnalysisError):
    """Raised when a caller has used up the daily quota"""

    status_code = 429
    user_message = (
        "You have reached the daily limit of free analyses. Please try again tomorrow."
    )


class PageFetchError(AnalysisError):
    """Raised when the target page is unreachable, times out or answers non-2xx"""


class UpstreamFormatError(AnalysisError):
    """Raised when an external analysis payload does not match the expected schema"""


class AnalysisFailedError(AnalysisError):
    """Raised for any unexpected failure while extracting or scoring"""
