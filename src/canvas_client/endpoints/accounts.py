import logging
from typing import AsyncIterator, Optional

from canvas_client.connection import Connection
from canvas_client.endpoints.base import API_PATH, BaseEndpointClient, IdOrEntity, resolve_id
from canvas_client.endpoints.terms import TermsClient
from canvas_client.entities.accounts import Account
from canvas_client.settings import ListSettings

logger = logging.getLogger(__name__)


class AccountsClient(BaseEndpointClient):
    """
    Client for accounts endpoints.
    """

    def __init__(self, connection: Connection) -> None:
        super().__init__(connection, f"{API_PATH}/accounts")
        self._terms: Optional[TermsClient] = None

    @property
    def terms(self) -> TermsClient:
        """Client for the enrollment terms of an account."""
        if self._terms is None:
            self._terms = TermsClient(self._connection)
        return self._terms

    def list_for_current_user(self, settings: Optional[ListSettings] = None) -> AsyncIterator[Account]:
        """List the accounts the current user can view or manage."""
        logger.debug("Listing accounts for current user")
        return self._connection.list(self._build_path(), Account, settings)

    async def retrieve(self, account: IdOrEntity) -> Optional[Account]:
        """Retrieve a single account, or None if it does not exist."""
        account_id = resolve_id(account)
        logger.debug("Retrieving account with id %s", account_id)
        return await self._connection.retrieve(self._build_path(account_id), Account)
