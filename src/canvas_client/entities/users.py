from typing import List, Optional

from canvas_client.entities.base import EntityWithIdAndName


class User(EntityWithIdAndName):
    sis_user_id: Optional[str] = None
    email: Optional[str] = None
    group_ids: List[int] = []
    display_name: Optional[str] = None
    sortable_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    login_id: Optional[str] = None

    def get_display_name(self) -> str:
        """The display name if there is one, otherwise the full name."""
        return self.display_name or self.name
