"""Domain errors and failure typing."""


class BeachwatchError(Exception):
    """Base class for service failures."""

    error_code = "BEACHWATCH_ERROR"


class ConfigError(BeachwatchError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ValidationError(BeachwatchError):
    """Raised when upstream data breaks its declared contract."""

    error_code = "VALIDATION_ERROR"


class QueryValidationError(BeachwatchError):
    """Raised for invalid filter, sort or pagination parameters."""

    error_code = "QUERY_VALIDATION_ERROR"


class FetchError(BeachwatchError):
    """Raised when the upstream source cannot be read."""

    error_code = "FETCH_ERROR"
    retryable = False


class NetworkError(FetchError):
    error_code = "NETWORK_ERROR"
    retryable = True


class UpstreamTimeoutError(FetchError):
    error_code = "TIMEOUT_ERROR"
    retryable = True


class UpstreamServerError(FetchError):
    error_code = "UPSTREAM_SERVER_ERROR"
    retryable = True


class UpstreamClientError(FetchError):
    """4xx from upstream: the request we send is wrong, retrying cannot help."""

    error_code = "UPSTREAM_CLIENT_ERROR"


class UpstreamPayloadError(FetchError):
    error_code = "UPSTREAM_PAYLOAD_ERROR"


class RetryExhaustedError(FetchError):
    """Raised once every attempt has failed; wraps the last observed error."""

    error_code = "RETRY_EXHAUSTED"

    def __init__(self, message: str, *, last_error: FetchError, attempts: int) -> None:
        super().__init__(message)
        self.last_error = last_error
        self.attempts = attempts
