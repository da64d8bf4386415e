"""Custom exception hierarchy for skwindy."""

from __future__ import annotations


class WindyError(Exception):
    """Base exception for all skwindy errors."""

    code: str = "error"


class WindyConfigError(WindyError):
    """Invalid or missing configuration."""

    code = "config"


class NoFixAvailable(WindyError):
    """No valid position is available on the sensor bus."""

    code = "no_fix"


class NoSensorData(WindyError):
    """Every configured sensor path is empty."""

    code = "no_sensor_data"


class WindyTransportError(WindyError):
    """Network-level failure (connection error, timeout).

    Transient: the next scheduled cycle is the retry.
    """

    code = "transport"

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class WindyApiError(WindyError):
    """The API answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)

    @property
    def code(self) -> str:  # type: ignore[override]
        return str(self.status_code)


class WindyAuthenticationError(WindyApiError):
    """Station password or account key rejected (401/403).

    Not retryable until the credentials change.
    """


class WindyMalformedRequestError(WindyApiError):
    """Request rejected as invalid (400).

    Not retryable until the configuration is fixed.
    """


class WindyRateLimitError(WindyApiError):
    """Too many requests (429).

    ``retry_after_ms`` is the window announced by the server, or ``None``
    when the response carried none.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 429,
        endpoint: str = "",
        retry_after_ms: int | None = None,
    ) -> None:
        self.retry_after_ms = retry_after_ms
        super().__init__(message, status_code=status_code, endpoint=endpoint)
