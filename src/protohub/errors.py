"""Proto Hub exception hierarchy.

All Proto Hub exceptions inherit from ProtoHubError. The deploy pipeline only
ever raises DeployError subclasses, which form a closed set: every subclass
carries a ``kind`` tag and the HTTP status a route should answer with.
Nothing in the pipeline is retried, so ``retryable`` stays False.
"""


class ProtoHubError(Exception):
    """Base exception for all Proto Hub errors."""

    status_code = 500

    def __init__(self, message: str = "", *, retryable: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.retryable = retryable


class DeployError(ProtoHubError):
    """Terminal failure of one deploy invocation."""

    kind = "deploy"


class InputValidationError(DeployError):
    """Malformed request input (repository URL, missing fields, bad archive)."""

    kind = "validation"
    status_code = 400


class AuthorizationError(DeployError):
    """No active session."""

    kind = "authorization"
    status_code = 401


class ConfigError(DeployError):
    """Invalid or missing configuration."""

    kind = "configuration"
    status_code = 500


class UpstreamError(DeployError):
    """A provider call failed.

    ``status_code`` is 400 when the caller can correct the input, 500 otherwise.
    """

    kind = "upstream"

    def __init__(
        self,
        message: str = "",
        *,
        status_code: int = 500,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.upstream_status = upstream_status


class RateLimitError(UpstreamError):
    """Source host refused the request because the rate limit is exhausted."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message, status_code=400, upstream_status=403)


class RepoNotFoundError(UpstreamError):
    """Source host does not know the repository (or it is private)."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message, status_code=400, upstream_status=404)


class PolicyError(DeployError):
    """The collected file set violates the filter policy."""

    kind = "policy"
    status_code = 400


class PayloadTooLargeError(PolicyError):
    def __init__(self, measured_bytes: int, cap_bytes: int) -> None:
        measured_mib = measured_bytes / (1024 * 1024)
        cap_mib = cap_bytes / (1024 * 1024)
        super().__init__(
            f"Payload too large: {measured_mib:.2f} MiB after encoding "
            f"exceeds the {cap_mib:.0f} MiB limit. "
            "Exclude large assets or build artifacts and try again."
        )
        self.measured_bytes = measured_bytes
        self.cap_bytes = cap_bytes


class NoFilesError(PolicyError):
    """Collection finished with zero eligible files."""


class CatalogError(ProtoHubError):
    """Row store read or write failed."""

    kind = "bookkeeping"

    def __init__(self, message: str = "", *, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code
