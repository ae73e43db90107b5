import logging
from typing import Optional

from canvas_client.connection import Connection
from canvas_client.endpoints.base import API_PATH, BaseEndpointClient
from canvas_client.entities.users import User

logger = logging.getLogger(__name__)


class CurrentUserClient(BaseEndpointClient):
    """
    Client for the user the connection is authenticated as.
    """

    def __init__(self, connection: Connection) -> None:
        super().__init__(connection, f"{API_PATH}/users/self")

    async def get(self) -> Optional[User]:
        """Retrieve the details of the current user."""
        logger.debug("Retrieving current user details")
        return await self._connection.retrieve(self._build_path(), User)
