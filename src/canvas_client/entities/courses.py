from typing import List, Optional

from canvas_client.entities.accounts import Term
from canvas_client.entities.base import EntityWithIdAndName
from canvas_client.entities.users import User


class Course(EntityWithIdAndName):
    course_code: str = ""
    default_view: Optional[str] = None
    total_students: int = 0
    workflow_state: str = "unknown"
    teachers: Optional[List[User]] = None
    term: Optional[Term] = None

    @property
    def is_available(self) -> bool:
        return self.workflow_state.lower() == "available"
