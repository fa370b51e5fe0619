"""Exception types raised by adapters and handled by the pipeline."""


class GifrotError(Exception):
    """Base class for all gifrot errors."""


class ConfigError(GifrotError):
    """Configuration or credentials are missing or invalid."""


class ProbeError(GifrotError):
    """ffprobe could not report a usable duration."""


class EncodeError(GifrotError):
    """ffmpeg failed to produce a segment artifact."""


class AccountClientError(GifrotError):
    """The account API rejected a request."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(AccountClientError):
    """The account API asked us to slow down."""

    def __init__(self, message: str, status_code: int = 429, retry_after: float = 0.0):
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after
