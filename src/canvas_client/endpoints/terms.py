import logging
from typing import AsyncIterator, Optional

from canvas_client.connection import Connection
from canvas_client.endpoints.base import API_PATH, BaseEndpointClient, IdOrEntity, resolve_id
from canvas_client.entities.accounts import Term
from canvas_client.settings import ListSettings

logger = logging.getLogger(__name__)


class TermsClient(BaseEndpointClient):
    """
    Client for the enrollment terms of an account.
    """

    def __init__(self, connection: Connection) -> None:
        super().__init__(connection, f"{API_PATH}/accounts")

    async def retrieve(self, account: IdOrEntity, term: IdOrEntity) -> Optional[Term]:
        """Retrieve a single term, or None if it does not exist."""
        account_id, term_id = resolve_id(account), resolve_id(term)
        logger.debug("Retrieving term with id %s in %s", term_id, account_id)
        return await self._connection.retrieve(self._build_path(account_id, "terms", term_id), Term)

    def list_for_account(
        self,
        account: IdOrEntity,
        settings: Optional[ListSettings] = None,
    ) -> AsyncIterator[Term]:
        """
        List the terms of an account.

        Canvas wraps each page of terms in an ``enrollment_terms`` object.
        """
        account_id = resolve_id(account)
        logger.debug("Listing terms for account with id %s", account_id)
        return self._connection.list(
            self._build_path(account_id, "terms"),
            Term,
            settings,
            key="enrollment_terms",
        )
