"""
Configuration for the Canvas client.

Settings are loaded from environment variables prefixed with ``CANVAS_`` (or
from a ``.env`` file) and turned into a :class:`Client` by
:class:`ClientConfiguration`.

Example usage:
    ```python
    client = ClientConfiguration().via_http(url, token).build()

    # or, from CANVAS_URL / CANVAS_TOKEN
    client = ClientConfiguration.from_settings().build()
    ```
"""

import logging
from typing import AsyncIterator, Optional

import httpx
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from canvas_client.client import Client
from canvas_client.connection import JSON_MEDIA_TYPE, Connection
from canvas_client.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CanvasSettings(BaseSettings):
    """Connection settings for a Canvas server."""

    model_config = SettingsConfigDict(
        env_prefix="CANVAS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = Field(
        default="",
        description="URL of the Canvas server",
    )
    token: str = Field(
        default="",
        description="Access token used as the bearer token",
    )
    timeout: float = Field(
        default=30.0,
        description="Request timeout in seconds",
    )
    log_responses: bool = Field(
        default=False,
        description="Log every JSON response body at debug level",
    )


async def log_incoming_content(connection: Connection, response: httpx.Response) -> AsyncIterator[bytes]:
    """
    Response interceptor that logs JSON bodies before they are decoded.

    The body is buffered in full so it can be logged, then handed on
    unchanged. Non-JSON responses are streamed through untouched.
    """
    content_type = response.headers.get("content-type", "")
    if not content_type.startswith(JSON_MEDIA_TYPE):
        connection.logger.debug("Received non-JSON data")
        async for chunk in response.aiter_bytes():
            yield chunk
        return

    body = await response.aread()
    connection.logger.debug("Received: %s", body.decode(response.encoding or "utf-8", errors="replace"))
    yield body


class ClientConfiguration:
    """Builder for a :class:`Client`."""

    def __init__(self):
        self._connection: Optional[Connection] = None

    @property
    def connection(self) -> Optional[Connection]:
        return self._connection

    def via_http(
        self,
        url: str,
        token: str,
        client: Optional[httpx.AsyncClient] = None,
        *,
        timeout: float = 30.0,
    ) -> "ClientConfiguration":
        """Connect over plain HTTP."""
        self._connection = Connection(url, token, client=client, timeout=timeout)
        return self

    def via_http_with_response_logging(
        self,
        url: str,
        token: str,
        client: Optional[httpx.AsyncClient] = None,
        *,
        timeout: float = 30.0,
    ) -> "ClientConfiguration":
        """Connect over HTTP, logging every JSON response at debug level."""
        self._connection = Connection(
            url,
            token,
            client=client,
            timeout=timeout,
            response_stream=log_incoming_content,
        )
        return self

    @classmethod
    def from_settings(cls, settings: Optional[CanvasSettings] = None) -> "ClientConfiguration":
        """Configure a connection from settings (the environment by default)."""
        settings = settings or CanvasSettings()
        configuration = cls()
        if settings.log_responses:
            return configuration.via_http_with_response_logging(
                settings.url, settings.token, timeout=settings.timeout
            )
        return configuration.via_http(settings.url, settings.token, timeout=settings.timeout)

    def build(self) -> Client:
        """
        Build the client.

        Raises:
            ConfigurationError: If no connection has been configured
        """
        if self._connection is None:
            raise ConfigurationError("Connection must be initialised.")

        logger.debug("Building client for %s", self._connection.base_address)
        return Client(self._connection)
