from __future__ import annotations


class SkelmatchError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(SkelmatchError):
    """Raised for malformed or empty input. Never retried."""


class ConfigurationError(SkelmatchError):
    """Raised for invalid or missing configuration."""


class OracleError(SkelmatchError):
    """Raised when the rewrite oracle fails to produce a usable result."""


class OracleTransientError(OracleError):
    """Rate limit, overload, timeout or connection trouble; safe to retry."""


class OracleFatalError(OracleError):
    """Malformed or unexpected oracle response; retrying will not help."""


class PersistenceError(SkelmatchError):
    """Raised by stores when the backend rejects a read or write."""


class EmptyBankError(SkelmatchError):
    """Raised when a matching operation has no bank entries to match against."""


class SectionFailedError(SkelmatchError):
    """Raised when every sentence of a batch section failed."""
