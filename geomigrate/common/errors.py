"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for migration failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ConnectionFailed(PipelineError):
    """Raised when the store connection cannot be established at startup."""

    error_code = "CONNECTION_FAILED"


class GeocodingFailed(PipelineError):
    """Raised when every geocoding attempt for one record has failed."""

    error_code = "GEOCODING_FAILED"

    def __init__(self, query: str, attempts: int, cause: BaseException | None = None) -> None:
        super().__init__(f"Geocoding failed after {attempts} attempts for {query!r}: {cause}")
        self.query = query
        self.attempts = attempts
        self.cause = cause


class WriteFailed(PipelineError):
    """Raised when a batch cannot be written to the target store."""

    error_code = "WRITE_FAILED"
