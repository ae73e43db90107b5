from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from canvas_client.entities.base import CourseEntity, Entity, EntityWithId
from canvas_client.entities.enums import LatePolicyStatus
from canvas_client.entities.users import User


class AssessmentRubric(Entity):
    """The assessment of a single rubric criterion."""
    rating_id: Optional[str] = None
    comments: Optional[str] = None
    points: Optional[float] = None


SubmissionRubric = Dict[str, AssessmentRubric]


class Attachment(EntityWithId):
    """A file stored in Canvas, e.g. the result of an upload."""
    display_name: Optional[str] = None
    filename: Optional[str] = None
    content_type: Optional[str] = Field(None, alias="content-type")
    size: Optional[int] = None
    url: Optional[str] = None
    created_at: Optional[datetime] = None


class SubmissionFile(Entity):
    filename: str = ""
    url: str = ""
    updated_at: Optional[datetime] = None


class SubmissionComment(EntityWithId):
    author_id: int = 0
    author_name: Optional[str] = None
    comment: Optional[str] = None
    attachments: Optional[List[Attachment]] = None
    created_at: Optional[datetime] = None


class Submission(CourseEntity):
    assignment_id: int = Field(0, exclude=True)
    user_id: Optional[int] = None
    user: Optional[User] = None
    attachments: Optional[List[SubmissionFile]] = None
    submission_comments: Optional[List[SubmissionComment]] = None
    rubric_assessment: Optional[SubmissionRubric] = None
    grade: Optional[str] = None
    score: Optional[float] = None
    points_deducted: Optional[float] = None
    late: bool = False
    seconds_late: Optional[int] = None
    late_policy_status: Optional[LatePolicyStatus] = None
    submitted_at: Optional[datetime] = None
    workflow_state: Optional[str] = None


class SubmissionSummary(Entity):
    course_id: int = Field(0, exclude=True)
    assignment_id: int = Field(0, exclude=True)
    graded: int = 0
    ungraded: int = 0
    not_submitted: int = 0

    @property
    def total(self) -> int:
        return self.graded + self.ungraded + self.not_submitted
