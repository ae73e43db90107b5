"""
Base class for the Canvas resource clients.

Resource clients are thin: they build paths and settings, then delegate the
HTTP work to the shared :class:`Connection`.
"""

from typing import Union

from canvas_client.connection import Connection
from canvas_client.entities.base import EntityWithId

API_PATH = "/api/v1"

IdOrEntity = Union[int, EntityWithId]


def resolve_id(item: IdOrEntity) -> int:
    """Get the id of an entity, or pass an id straight through."""
    if isinstance(item, EntityWithId):
        return item.id
    return item


class BaseEndpointClient:
    """
    Base class for all resource clients.

    Provides access to the connection and path building.
    """

    def __init__(self, connection: Connection, base_path: str = API_PATH):
        """
        Initialize the endpoint client.

        Args:
            connection: The shared Canvas connection
            base_path: Base path for this endpoint (e.g., "/api/v1/accounts")
        """
        self._connection = connection
        self._base_path = base_path.rstrip("/")

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def base_path(self) -> str:
        """Get the base path for this endpoint."""
        return self._base_path

    def _build_path(self, *parts: Union[str, int]) -> str:
        """Build a path from the base path and additional parts."""
        clean_parts = [str(p).strip("/") for p in parts if p is not None and p != ""]
        if clean_parts:
            return f"{self._base_path}/{'/'.join(clean_parts)}"
        return self._base_path
