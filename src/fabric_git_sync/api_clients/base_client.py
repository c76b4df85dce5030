"""Base Fabric REST API session.

Holds the bearer token, base URL and HTTP client for one run. Resource
clients receive the session by reference and never touch httpx directly.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..exceptions import HttpError
from .error_messages import extract_error_message, parse_error_body

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class FabricSession:
    """Authenticated HTTP session against the Fabric REST API."""

    def __init__(self, api_url: str, token: str, timeout: float = 30.0):
        """Initialize session.

        Args:
            api_url: Base URL of the Fabric REST API
            token: Bearer token for the Authorization header
            timeout: Per-request timeout in seconds
        """
        if not token:
            raise ValueError("token cannot be empty")
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._token = token
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Get or create the underlying HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=self.timeout,
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json",
                },
                follow_redirects=True,
                verify=True,
            )
        return self._client

    def build_url(self, endpoint: str) -> str:
        """Resolve an endpoint path (or absolute continuation URL) to a URL."""
        if endpoint.startswith("http://") or endpoint.startswith("https://"):
            return endpoint
        return f"{self.api_url}/{endpoint.lstrip('/')}"

    def request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """Send a request and return the response if it is 2xx.

        Args:
            method: HTTP method
            endpoint: API path relative to api_url, or an absolute URL
            **kwargs: Additional arguments for httpx request

        Returns:
            HTTP response object

        Raises:
            HttpError: If the request fails in transport or returns non-2xx
        """
        url = self.build_url(endpoint)
        logger.debug(f"{method} {url}")

        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise HttpError(
                f"{method} {endpoint} failed", details=extract_error_message(error=e)
            )

        logger.debug(f"{method} {url} -> {response.status_code}")

        if response.status_code >= 400:
            raise HttpError(
                f"{method} {endpoint} returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=parse_error_body(response),
                details=extract_error_message(response=response),
            )
        return response

    def get(self, endpoint: str, **kwargs) -> httpx.Response:
        return self.request("GET", endpoint, **kwargs)

    def post(self, endpoint: str, **kwargs) -> httpx.Response:
        return self.request("POST", endpoint, **kwargs)

    def patch(self, endpoint: str, **kwargs) -> httpx.Response:
        return self.request("PATCH", endpoint, **kwargs)

    def get_json(self, endpoint: str, **kwargs) -> Dict[str, Any]:
        """GET an endpoint and decode its JSON object body."""
        response = self.get(endpoint, **kwargs)
        return response_json_object(response, endpoint)

    def iter_pages(self, endpoint: str) -> Iterator[List[Dict[str, Any]]]:
        """Yield the ``value`` list of every page of a paged collection.

        Follows ``continuationUri`` when present, otherwise re-requests the
        endpoint with ``continuationToken``.
        """
        next_endpoint: Optional[str] = endpoint
        params: Optional[Dict[str, str]] = None

        while next_endpoint:
            data = self.get_json(next_endpoint, params=params)
            yield list(data.get("value") or [])

            continuation_uri = data.get("continuationUri")
            continuation_token = data.get("continuationToken")
            if continuation_uri:
                next_endpoint, params = continuation_uri, None
            elif continuation_token:
                next_endpoint = endpoint
                params = {"continuationToken": continuation_token}
            else:
                next_endpoint = None

    def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
        self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def response_json_object(
    response: httpx.Response, endpoint: str
) -> Dict[str, Any]:
    """Decode a JSON object body or raise HttpError."""
    try:
        data = response.json()
    except ValueError as e:
        raise HttpError(
            f"Invalid JSON returned by {endpoint}",
            status_code=response.status_code,
            details=str(e),
        )
    if not isinstance(data, dict):
        raise HttpError(
            f"Unexpected response shape from {endpoint}",
            status_code=response.status_code,
            details=f"expected object, got {type(data).__name__}",
        )
    return data


def validate_model(
    model: Type[ModelT], data: Any, endpoint: str
) -> ModelT:
    """Validate a payload into model or raise HttpError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise HttpError(
            f"Malformed {model.__name__} returned by {endpoint}",
            body=data if isinstance(data, dict) else None,
            details="; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ),
        )


class FabricAPIClient:
    """Base class for resource clients sharing one FabricSession."""

    def __init__(self, session: FabricSession):
        self.session = session
