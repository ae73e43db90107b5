"""Pydantic models for the entities returned by Canvas."""

from canvas_client.entities.accounts import Account, Term
from canvas_client.entities.assignments import (
    Assignment,
    AssignmentDate,
    PeerReview,
    RubricItem,
    RubricRating,
)
from canvas_client.entities.base import (
    CourseEntity,
    Entity,
    EntityWithId,
    EntityWithIdAndName,
)
from canvas_client.entities.courses import Course
from canvas_client.entities.enums import EnrolmentType, LatePolicyStatus
from canvas_client.entities.errors import Error
from canvas_client.entities.files import FileUpload, FileUploadToken
from canvas_client.entities.submissions import (
    AssessmentRubric,
    Attachment,
    Submission,
    SubmissionComment,
    SubmissionFile,
    SubmissionRubric,
    SubmissionSummary,
)
from canvas_client.entities.users import User

__all__ = [
    "Account",
    "AssessmentRubric",
    "Assignment",
    "AssignmentDate",
    "Attachment",
    "Course",
    "CourseEntity",
    "EnrolmentType",
    "Entity",
    "EntityWithId",
    "EntityWithIdAndName",
    "Error",
    "FileUpload",
    "FileUploadToken",
    "LatePolicyStatus",
    "PeerReview",
    "RubricItem",
    "RubricRating",
    "Submission",
    "SubmissionComment",
    "SubmissionFile",
    "SubmissionRubric",
    "SubmissionSummary",
    "Term",
    "User",
]
