"""
Main Canvas API client.

This module provides the Client class, the primary entry point for working
with a Canvas server. It owns the connection and hands it to the resource
clients, which are created on first use.
"""

from typing import Any, Dict, Type, TypeVar
import logging

from canvas_client.connection import Connection
from canvas_client.endpoints import AccountsClient, CoursesClient, CurrentUserClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Client:
    """
    Main client for the Canvas API.

    Example usage:
        ```python
        async with Client(Connection("https://canvas.example.com", token)) as client:
            user = await client.current_user.get()

            async for course in client.courses.list_for_current_user():
                async for assignment in client.courses.assignments.list_for_course(course):
                    print(course.name, assignment.name)
        ```

    Usually built with :class:`ClientConfiguration`:
        ```python
        client = ClientConfiguration().via_http(url, token).build()
        ```
    """

    def __init__(self, connection: Connection):
        """
        Initialize the client.

        Args:
            connection: The connection to the Canvas server
        """
        self._connection = connection
        self._endpoint_clients: Dict[str, Any] = {}

    @property
    def connection(self) -> Connection:
        """Get the underlying connection."""
        return self._connection

    # =========================================================================
    # Endpoint Clients
    # =========================================================================

    def _get_endpoint_client(self, client_class: Type[T]) -> T:
        """Get or create an endpoint client instance."""
        class_name = client_class.__name__
        if class_name not in self._endpoint_clients:
            logger.debug("Creating %s", class_name)
            self._endpoint_clients[class_name] = client_class(self._connection)
        return self._endpoint_clients[class_name]

    @property
    def accounts(self) -> AccountsClient:
        return self._get_endpoint_client(AccountsClient)

    @property
    def courses(self) -> CoursesClient:
        return self._get_endpoint_client(CoursesClient)

    @property
    def current_user(self) -> CurrentUserClient:
        return self._get_endpoint_client(CurrentUserClient)

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._connection.aclose()
        self._endpoint_clients.clear()
        logger.debug("Client closed")

    async def __aenter__(self) -> "Client":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()
