from abc import ABC, abstractmethod

from docassembly.transport.models import ApiResponse, RequestConfig


class BaseTransport(ABC):
    """Contract for sending requests to the document service."""

    @abstractmethod
    async def send(self, request: RequestConfig) -> ApiResponse:
        """Send ``request`` and return the decoded response.

        ``response_type`` selects the decoding: ``bytes``, ``json`` or ``text``.

        Raises:
            AuthenticationError: if the key is missing or rejected.
            ValidationError: if the service rejects the request (4xx).
            APIError: if the service fails (5xx).
            NetworkError: if the service cannot be reached in time.
        """
