class ClientError(Exception):
    """Base exception for all document service client errors."""

    default_code = "CLIENT_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, object] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details
        self.status_code = status_code

    def to_dict(self) -> dict[str, object]:
        return {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "status_code": self.status_code,
        }

    def __str__(self) -> str:
        result = f"{type(self).__name__}: {self.message}"
        if self.code != ClientError.default_code:
            result += f" ({self.code})"
        if self.status_code:
            result += f" [HTTP {self.status_code}]"
        return result

    @classmethod
    def wrap(cls, error: BaseException, message: str) -> "ClientError":
        """Return ``error`` unchanged if it is a ClientError, else wrap it."""
        if isinstance(error, ClientError):
            return error
        wrapped = ClientError(
            message,
            "WRAPPED_ERROR",
            {"original_error": type(error).__name__, "error": str(error)},
        )
        wrapped.__cause__ = error
        return wrapped


class ValidationError(ClientError):
    """Raised for malformed input, unreadable PDFs and builder misuse."""

    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        details: dict[str, object] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, self.default_code, details, status_code)


class APIError(ClientError):
    """Raised when the service answers with a server-side error."""

    default_code = "API_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int,
        details: dict[str, object] | None = None,
    ) -> None:
        super().__init__(message, self.default_code, details, status_code)


class AuthenticationError(ClientError):
    """Raised when the API key is missing, rejected or cannot be resolved."""

    default_code = "AUTHENTICATION_ERROR"

    def __init__(
        self,
        message: str,
        details: dict[str, object] | None = None,
        status_code: int = 401,
    ) -> None:
        super().__init__(message, self.default_code, details, status_code)


class NetworkError(ClientError):
    """Raised when the service cannot be reached or the request times out."""

    default_code = "NETWORK_ERROR"

    def __init__(self, message: str, details: dict[str, object] | None = None) -> None:
        super().__init__(message, self.default_code, details)
