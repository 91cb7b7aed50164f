"""
Exception types raised by the merge pipeline
"""


class MergeError(Exception):
    """Base class for merge pipeline failures"""


class InputFormatError(MergeError):
    """Upload could not be base64-decoded or parsed as CSV. Fatal for the batch."""


# Raised by the CSV decoder; same failure class as InputFormatError
DecodeError = InputFormatError


class MissingSourceError(MergeError):
    """Payload carries neither a combined report nor all three source files"""


class MissingRequiredFieldError(MergeError):
    """A row lacks property, unit or tenant. Caught by the matcher; the row is skipped."""

    def __init__(self, field_name: str):
        super().__init__(f"Missing required field: {field_name}")
        self.field_name = field_name


class JoinAmbiguityError(MergeError):
    """Two rows in one source map to the same tenant key under the reject policy"""

    def __init__(self, source: str, key):
        super().__init__(
            f"Duplicate {source} rows for property={key.property!r} "
            f"unit={key.unit!r} tenant={key.name!r}"
        )
        self.source = source
        self.key = key


class ExternalFetchError(MergeError):
    """The prior snapshot could not be fetched from its store"""


class PollingTimeoutError(MergeError):
    """Bounded polling gave up before the job finished"""


class ScoringServiceError(MergeError):
    """Scoring service answered with an unexpected status"""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code
