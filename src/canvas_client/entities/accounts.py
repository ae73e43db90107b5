from datetime import datetime
from typing import Optional

from canvas_client.entities.base import EntityWithIdAndName


class Account(EntityWithIdAndName):
    parent_account_id: Optional[int] = None
    root_account_id: Optional[int] = None


class Term(EntityWithIdAndName):
    created_at: Optional[datetime] = None
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
