"""Custom exceptions for DepSentinel."""


class DepSentinelError(Exception):
    """Base exception for all DepSentinel errors."""


class ConfigurationError(DepSentinelError):
    """Raised when the environment or project setup cannot be used."""


class UnsupportedPackageManagerError(ConfigurationError):
    """Raised when the project uses a package manager we cannot read."""


class TreeSourceError(DepSentinelError):
    """Raised when the package manager produced no usable dependency tree."""


class ManifestError(DepSentinelError):
    """Raised when a generated manifest file is missing or malformed."""


class AuthenticationError(DepSentinelError):
    """Health-check secret missing or wrong (-> HTTP 401)."""


class AdvisoryQueryError(DepSentinelError):
    """Base for advisory feed failures. Always degraded, never fatal."""


class AdvisoryTimeoutError(AdvisoryQueryError):
    """The bulk advisory request exceeded its timeout."""


class AdvisoryTransportError(AdvisoryQueryError):
    """The bulk advisory request failed before a response arrived."""


class AdvisoryHTTPError(AdvisoryQueryError):
    """The advisory feed answered with a non-2xx status."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"npm advisory API returned HTTP {status_code}")


class AdvisoryParseError(AdvisoryQueryError):
    """The advisory response body did not have the expected structure."""
