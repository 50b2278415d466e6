"""
Core HTTP client for the Geocore API.

Handles session state, authentication, request/response and envelope unwrapping.
"""

import logging
import os
from typing import Any

import httpx

from geocore.core.types import Envelope, Session
from geocore.core.utils import build_query_string

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_TIMEOUT = 60.0
ACCESS_TOKEN_HEADER = "Geocore-Access-Token"
USER_AGENT = "geocore-sdk-python"


class GeocoreError(Exception):
    """Base error class for SDK errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Return the error as a plain dict (message, details) for callers to log or report."""
        result: dict[str, Any] = {"error": self.message}
        if self.details:
            result["details"] = self.details
        return result


class TransportError(GeocoreError):
    """The request failed before any response was received."""

    def __init__(self, cause: Exception):
        super().__init__(f"Connection error: {cause}")
        self.cause = cause


class HttpError(GeocoreError):
    """The server answered with a non-2xx HTTP status."""

    def __init__(self, status: int, details: dict | None = None):
        super().__init__(f"HTTP status: {status}", details)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        """Return the error as a plain dict, including the HTTP status."""
        result = super().to_dict()
        result["status"] = self.status
        return result


class ServiceError(GeocoreError):
    """The response envelope reported an error."""

    def __init__(self, code: Any, message: Any):
        super().__init__(str(message))
        self.code = code
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Return the error as a plain dict with the service error code."""
        return {"error": self.message, "code": self.code}


class MalformedEnvelope(GeocoreError):
    """The response body does not follow the envelope contract."""

    def __init__(self, body: Any):
        super().__init__(f"Unexpected result: {body!r}")
        self.body = body


class ValidationError(GeocoreError):
    """Validation error for local input/configuration issues (not API errors)."""


class MissingParameter(ValidationError):
    """A builder terminal method was called before a required setter."""

    def __init__(self, name: str):
        super().__init__(f"Missing required parameter: {name}", {"parameter": name})
        self.name = name


def unwrap_envelope(response: httpx.Response) -> Any:
    """
    Turn a completed HTTP exchange into the envelope's result.

    Args:
        response: The HTTP response

    Returns:
        The ``result`` member of a success envelope

    Raises:
        HttpError: On a non-2xx status, whatever the body
        ServiceError: When the envelope status is "error"
        MalformedEnvelope: When the body is not a valid envelope

    """
    if not response.is_success:
        raise HttpError(response.status_code, details={"body": response.text})

    try:
        body = response.json()
    except ValueError:
        logger.warning("Response body is not JSON")
        raise MalformedEnvelope(response.text)

    if not isinstance(body, dict):
        raise MalformedEnvelope(body)

    envelope = Envelope.from_dict(body)
    if envelope.is_success:
        return envelope.result
    if envelope.is_error:
        raise ServiceError(envelope.code, envelope.message)

    logger.warning(f"Unrecognized envelope status {envelope.status!r}")
    raise MalformedEnvelope(body)


def build_async_client(
    timeout: float = DEFAULT_TIMEOUT,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` with the SDK's default timeout and headers."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        transport=transport,
    )


def _env_timeout() -> float:
    raw = os.environ.get("GEOCORE_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        raise ValidationError(f"GEOCORE_TIMEOUT must be a number of seconds, got {raw!r}")


class APIClient:
    """
    Low-level async HTTP client for the Geocore API.

    Handles:
    - Session state (base URL, project ID, access token)
    - Authentication via the access token header
    - HTTP methods (GET, POST, PUT, DELETE) and multipart upload
    - Envelope unwrapping and error mapping

    The access token is read from the session when each request is sent, so
    requests in flight while authenticate/deauthenticate runs may observe
    either value. Serializing those calls is up to the caller.
    """

    def __init__(
        self,
        base_url: str | None = None,
        project_id: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Geocore endpoint base URL (or GEOCORE_BASE_URL env var)
            project_id: Geocore project ID (or GEOCORE_PROJECT_ID env var)
            access_token: Existing access token (or GEOCORE_ACCESS_TOKEN env var)
            timeout: Request timeout in seconds (or GEOCORE_TIMEOUT env var)
            http_client: Preconfigured ``httpx.AsyncClient`` to send requests with

        """
        self.session = Session(
            base_url=base_url or os.environ.get("GEOCORE_BASE_URL"),
            project_id=project_id or os.environ.get("GEOCORE_PROJECT_ID"),
            access_token=access_token or os.environ.get("GEOCORE_ACCESS_TOKEN"),
        )
        self.timeout = timeout or _env_timeout()
        # a caller-supplied client is closed by the caller
        self._owns_http = http_client is None
        self._http = http_client or build_async_client(self.timeout)

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool if this client created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _ensure_base_url(self) -> str:
        """Ensure base URL is configured."""
        if not self.session.base_url:
            raise ValidationError("Base URL not configured. Set GEOCORE_BASE_URL or call configure()")
        return self.session.base_url

    def _ensure_project_id(self) -> str:
        """Ensure project ID is configured."""
        if not self.session.project_id:
            raise ValidationError("Project ID not configured. Set GEOCORE_PROJECT_ID or call configure()")
        return self.session.project_id

    def _build_url(self, path: str) -> str:
        """Build full URL from path."""
        return f"{self._ensure_base_url()}{path}"

    async def _make_request(
        self,
        method: str,
        path: str,
        data: Any = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an HTTP request to the API.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: API path including any query string (e.g., /places?num=5)
            data: JSON body for POST/PUT
            files: Multipart attachments for uploads

        Returns:
            The unwrapped envelope result

        Raises:
            TransportError: When no response was obtained
            HttpError, ServiceError, MalformedEnvelope: See unwrap_envelope

        """
        url = self._build_url(path)
        headers = {}
        token = self.session.access_token
        if token:
            headers[ACCESS_TOKEN_HEADER] = token

        # query strings may carry credentials
        logger.debug(f"{method} {path.split('?', 1)[0]}")

        try:
            response = await self._http.request(
                method,
                url,
                json=data,
                files=files,
                headers=headers,
            )
        except httpx.RequestError as e:
            raise TransportError(e) from e

        return unwrap_envelope(response)

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make a GET request."""
        return await self._make_request("GET", f"{path}{build_query_string(params)}")

    async def post(self, path: str, data: Any = None) -> Any:
        """Make a POST request."""
        return await self._make_request("POST", path, data)

    async def put(self, path: str, data: Any = None) -> Any:
        """Make a PUT request."""
        return await self._make_request("PUT", path, data)

    async def delete(self, path: str) -> Any:
        """Make a DELETE request."""
        return await self._make_request("DELETE", path)

    async def upload(self, path: str, field: str, content: bytes, filename: str) -> Any:
        """
        Upload binary data as a multipart POST.

        Args:
            path: API path
            field: Form field name
            content: File content
            filename: File name sent with the content

        Returns:
            The unwrapped envelope result

        """
        return await self._make_request("POST", path, files={field: (filename, content)})

    # =========================================================================
    # Authentication
    # =========================================================================

    async def authenticate(self, user_id: str, password: str) -> str:
        """
        Exchange user credentials for an access token.

        The token is kept in the session and sent with every later request.
        On failure the current token is left as it was.

        Args:
            user_id: Geocore user ID
            password: Geocore user password

        Returns:
            The access token

        """
        project_id = self._ensure_project_id()
        query = build_query_string({"id": user_id, "password": password, "project_id": project_id})
        result = await self.post(f"/auth{query}")
        if not isinstance(result, dict) or not result.get("token"):
            raise MalformedEnvelope(result)

        self.session.access_token = result["token"]
        logger.info(f"Authenticated as {user_id} on project {project_id}")
        return self.session.access_token

    def deauthenticate(self) -> None:
        """Drop the access token. No request is made."""
        self.session.deauthenticate()
        logger.info("Access token cleared")

    def is_authenticated(self) -> str | bool:
        """Return the access token if authenticated, else False."""
        return self.session.is_authenticated()
