"""Exceptions raised by the AEO auditor.

Extraction never raises: a failed sub-extraction degrades to its default
value. Everything past extraction fails through one of these types.
"""

from typing import Optional


class AEOError(Exception):
    """Base class for all auditor errors."""


class FetchError(AEOError):
    """The page HTML could not be fetched."""

    def __init__(self, url: str, message: str):
        super().__init__(f"Failed to fetch {url}: {message}")
        self.url = url


class OracleError(AEOError):
    """Base class for failures at the scoring oracle boundary."""


class OracleCallError(OracleError):
    """Network failure or timeout while invoking the oracle.

    The auditor never retries; callers may retry since the pipeline is
    idempotent for identical inputs.
    """

    retryable = True

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class OracleParseError(OracleError):
    """The oracle response is not a valid ScoredAnalysis payload.

    The raw payload is kept for diagnostics.
    """

    def __init__(self, message: str, raw_payload: Optional[str] = None):
        super().__init__(message)
        self.raw_payload = raw_payload


class ContractViolationError(OracleError):
    """A single item in the oracle response breaks the output contract."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class EnumViolationError(ContractViolationError):
    """A closed-enum field holds a value outside its set."""

    def __init__(self, field_name: str, value, allowed, index: Optional[int] = None):
        allowed_values = ", ".join(allowed)
        location = f"fixes[{index}]." if index is not None else ""
        super().__init__(
            f"{location}{field_name}={value!r} is not one of: {allowed_values}",
            index=index,
        )
        self.field_name = field_name
        self.value = value
        self.allowed = list(allowed)


class TransformInvariantError(AEOError):
    """The report transformer broke one of its own invariants.

    Always a bug; never clamped or recovered.
    """
