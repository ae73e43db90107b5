from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from canvas_client.entities.base import CourseEntity, Entity, EntityWithId, EntityWithIdAndName


class RubricRating(Entity):
    id: str = ""
    description: str = ""
    long_description: Optional[str] = None
    points: float = 0.0


class RubricItem(Entity):
    id: str = ""
    description: str = ""
    criterion_use_range: bool = False
    ratings: Optional[List[RubricRating]] = None


class AssignmentDate(CourseEntity):
    """The dates for an assignment, either the base dates or an override."""

    assignment_id: int = Field(0, exclude=True)
    title: Optional[str] = None
    base: bool = False
    group_id: Optional[int] = None
    course_section_id: Optional[int] = None
    set_id: Optional[int] = None
    set_type: Optional[str] = None
    student_ids: Optional[List[int]] = None
    due_at: Optional[datetime] = None
    lock_at: Optional[datetime] = None
    unlock_at: Optional[datetime] = None


class Assignment(EntityWithIdAndName, CourseEntity):
    description: Optional[str] = None
    allowed_extensions: Optional[List[str]] = None
    all_dates: Optional[List[AssignmentDate]] = None
    all_dates_count: Optional[int] = None
    assignment_group_id: Optional[int] = None
    group_category_id: Optional[int] = None
    published: bool = False
    omit_from_final_grade: bool = False
    points_possible: Optional[float] = None
    position: Optional[int] = None
    rubric: Optional[List[RubricItem]] = None
    submission_types: List[str] = []
    html_url: Optional[str] = None
    unlock_at: Optional[datetime] = None
    lock_at: Optional[datetime] = None
    due_at: Optional[datetime] = None

    def to_payload(self) -> Dict[str, Any]:
        """The writable fields, as sent when creating or updating."""
        return self.model_dump(
            mode="json",
            exclude_none=True,
            exclude={"id", "all_dates", "all_dates_count", "html_url", "rubric"},
        )


class PeerReview(EntityWithId):
    assessor_id: int = 0
    user_id: int = 0
    course_id: int = Field(0, exclude=True)
    assignment_id: int = Field(0, exclude=True)
