"""
Client for the assignments of a course.

Covers assignments themselves, their override dates and peer reviews, and the
submissions made against them (retrieval, marking, comments, uploads and
downloads of submitted files).
"""

import logging
import os
from datetime import datetime
from typing import AsyncIterator, BinaryIO, Optional, TypeVar, Union

import httpx

from canvas_client.connection import Connection
from canvas_client.endpoints.base import API_PATH, BaseEndpointClient, IdOrEntity, resolve_id
from canvas_client.entities.assignments import Assignment, AssignmentDate, PeerReview
from canvas_client.entities.enums import LatePolicyStatus
from canvas_client.entities.files import FileUpload
from canvas_client.entities.submissions import (
    Attachment,
    Submission,
    SubmissionFile,
    SubmissionRubric,
    SubmissionSummary,
)
from canvas_client.exceptions import ClientError, ValidationError
from canvas_client.parameters import Parameters
from canvas_client.settings import (
    AssignmentItem,
    AssignmentList,
    ListSettings,
    SubmissionInclude,
    SubmissionList,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _format_number(value: Union[float, int, str]) -> str:
    if isinstance(value, str):
        return value
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _add_dates(
    parameters: Parameters,
    prefix: str,
    due_at: Optional[datetime],
    unlock_at: Optional[datetime],
    lock_at: Optional[datetime],
) -> Parameters:
    for name, value in (("due_at", due_at), ("unlock_at", unlock_at), ("lock_at", lock_at)):
        if value is not None:
            parameters.add(f"{prefix}[{name}]", value.isoformat())
    return parameters


class AssignmentsClient(BaseEndpointClient):
    """
    Client for assignments endpoints.

    Every entity returned has ``course_id`` (and, for items below an
    assignment, ``assignment_id``) filled in from the request.
    """

    def __init__(self, connection: Connection) -> None:
        super().__init__(connection, f"{API_PATH}/courses")

    def _assignment_path(self, course_id: int, *parts: Union[str, int]) -> str:
        return self._build_path(course_id, "assignments", *parts)

    @staticmethod
    def _stamp(item: T, course_id: int, assignment_id: Optional[int] = None) -> T:
        update = {"course_id": course_id}
        if assignment_id is not None:
            update["assignment_id"] = assignment_id
        return item.model_copy(update=update)

    @staticmethod
    def _check_name(assignment: Assignment) -> None:
        if not assignment.name:
            raise ValidationError(
                "Assignments must have a name - cannot be null or empty",
                field_name="name",
            )

    async def _upload(self, url: str, file: FileUpload) -> Attachment:
        return await self._connection.upload_file(
            url,
            Attachment,
            file.stream,
            file.name,
            file.generate_upload_args(),
        )

    # =========================================================================
    # Assignments
    # =========================================================================

    async def create(self, course: IdOrEntity, assignment: Assignment) -> Assignment:
        """
        Create a new assignment in a course.

        Raises:
            ValidationError: If the assignment has no name
            ClientError: If Canvas did not return the new assignment
        """
        self._check_name(assignment)
        course_id = resolve_id(course)
        logger.debug("Creating new assignment in course %s with name %s", course_id, assignment.name)
        item = await self._connection.post_json(
            self._assignment_path(course_id),
            Assignment,
            {"assignment": assignment.to_payload()},
        )
        if item is None:
            raise ClientError("No assignment returned from Canvas")
        return self._stamp(item, course_id)

    async def update(
        self,
        course: Optional[IdOrEntity],
        assignment_id: Optional[int],
        assignment: Assignment,
    ) -> Assignment:
        """
        Update an existing assignment.

        ``course`` and ``assignment_id`` default to the ids held by the
        assignment itself.

        Raises:
            ValidationError: If the assignment has no name
            ClientError: If Canvas did not return the updated assignment
        """
        self._check_name(assignment)
        course_id = resolve_id(course) if course is not None else assignment.course_id
        if assignment_id is None:
            assignment_id = assignment.id
        logger.debug(
            "Updating existing assignment in course %s with name %s [%s]",
            course_id,
            assignment.name,
            assignment_id,
        )
        item = await self._connection.put_json(
            self._assignment_path(course_id, assignment_id),
            Assignment,
            {"assignment": assignment.to_payload()},
        )
        if item is None:
            raise ClientError("No assignment returned from Canvas")
        return self._stamp(item, course_id)

    async def list_for_course(
        self,
        course: IdOrEntity,
        settings: Optional[AssignmentList] = None,
    ) -> AsyncIterator[Assignment]:
        """List the assignments in a course."""
        course_id = resolve_id(course)
        logger.debug("Listing assignments for course with id %s", course_id)
        async for item in self._connection.list(
            self._assignment_path(course_id),
            Assignment,
            settings or AssignmentList(),
        ):
            yield self._stamp(item, course_id)

    async def retrieve(
        self,
        course: IdOrEntity,
        assignment: IdOrEntity,
        settings: Optional[AssignmentItem] = None,
    ) -> Optional[Assignment]:
        """Retrieve a single assignment, or None if it does not exist."""
        course_id, assignment_id = resolve_id(course), resolve_id(assignment)
        settings = settings or AssignmentItem()
        logger.debug("Retrieving assignment %s in course with id %s", assignment_id, course_id)
        item = await self._connection.retrieve(
            self._assignment_path(course_id, assignment_id),
            Assignment,
            settings.to_parameters(),
        )
        return None if item is None else self._stamp(item, course_id)

    # =========================================================================
    # Override dates
    # =========================================================================

    async def list_override_dates(
        self,
        course: IdOrEntity,
        assignment: IdOrEntity,
        settings: Optional[ListSettings] = None,
    ) -> AsyncIterator[AssignmentDate]:
        """List the override dates of an assignment."""
        course_id, assignment_id = resolve_id(course), resolve_id(assignment)
        logger.debug("Listing override dates for assignment %s in course with id %s", assignment_id, course_id)
        async for item in self._connection.list(
            self._assignment_path(course_id, assignment_id, "overrides"),
            AssignmentDate,
            settings,
        ):
            yield self._stamp(item, course_id, assignment_id)

    async def add_override_for_section(
        self,
        course: IdOrEntity,
        assignment: IdOrEntity,
        section_id: int,
        due_at: Optional[datetime] = None,
        unlock_at: Optional[datetime] = None,
        lock_at: Optional[datetime] = None,
    ) -> AssignmentDate:
        """
        Add override dates for a course section.

        Raises:
            ClientError: If Canvas did not return the new override
        """
        course_id, assignment_id = resolve_id(course), resolve_id(assignment)
        values = Parameters().add("assignment_override[course_section_id]", section_id)
        _add_dates(values, "assignment_override", due_at, unlock_at, lock_at)
        logger.debug("Adding override for section %s to assignment %s in %s", section_id, assignment_id, course_id)
        item = await self._connection.post_form(
            self._assignment_path(course_id, assignment_id, "overrides"),
            AssignmentDate,
            values,
        )
        if item is None:
            raise ClientError("No override returned from Canvas")
        return self._stamp(item, course_id, assignment_id)

    async def update_override(
        self,
        course: IdOrEntity,
        assignment: IdOrEntity,
        override: IdOrEntity,
        due_at: Optional[datetime] = None,
        unlock_at: Optional[datetime] = None,
        lock_at: Optional[datetime] = None,
    ) -> AssignmentDate:
        """
        Change the dates of an existing override.

        Raises:
            ClientError: If Canvas did not return the override
        """
        course_id, assignment_id, override_id = resolve_id(course), resolve_id(assignment), resolve_id(override)
        values = _add_dates(Parameters(), "assignment_override", due_at, unlock_at, lock_at)
        logger.debug("Updating override %s for assignment %s in %s", override_id, assignment_id, course_id)
        item = await self._connection.put_form(
            self._assignment_path(course_id, assignment_id, "overrides", override_id),
            AssignmentDate,
            values,
        )
        if item is None:
            raise ClientError("No override returned from Canvas")
        return self._stamp(item, course_id, assignment_id)

    # =========================================================================
    # Peer reviews
    # =========================================================================

    async def list_peer_reviews(
        self,
        course: IdOrEntity,
        assignment: IdOrEntity,
        settings: Optional[ListSettings] = None,
    ) -> AsyncIterator[PeerReview]:
        """List the peer reviews of an assignment."""
        course_id, assignment_id = resolve_id(course), resolve_id(assignment)
        logger.debug("Listing peer reviews for assignment %s in course with id %s", assignment_id, course_id)
        async for item in self._connection.list(
            self._assignment_path(course_id, assignment_id, "peer_reviews"),
            PeerReview,
            settings,
        ):
            yield self._stamp(item, course_id, assignment_id)

    # =========================================================================
    # Submissions
    # =========================================================================

    async def list_submissions(
        self,
        course: IdOrEntity,
        assignment: IdOrEntity,
        settings: Optional[SubmissionList] = None,
    ) -> AsyncIterator[Submission]:
        """List the submissions for an assignment, always including the user."""
        course_id, assignment_id = resolve_id(course), resolve_id(assignment)
        settings = (settings or SubmissionList()).with_include(SubmissionInclude.USER)
        logger.debug("Listing submissions for assignment %s in course with id %s", assignment_id, course_id)
        async for item in self._connection.list(
            self._assignment_path(course_id, assignment_id, "submissions"),
            Submission,
            settings,
        ):
            yield self._stamp(item, course_id, assignment_id)

    async def retrieve_submission(
        self,
        course: IdOrEntity,
        assignment: IdOrEntity,
        user: IdOrEntity,
        settings: Optional[SubmissionList] = None,
    ) -> Optional[Submission]:
        """Retrieve the submission of a single user, or None if there is none."""
        course_id, assignment_id, user_id = resolve_id(course), resolve_id(assignment), resolve_id(user)
        settings = settings or SubmissionList()
        logger.debug(
            "Retrieving submission for assignment %s in course with id %s by student %s",
            assignment_id,
            course_id,
            user_id,
        )
        item = await self._connection.retrieve(
            self._assignment_path(course_id, assignment_id, "submissions", user_id),
            Submission,
            settings.to_parameters(),
        )
        return None if item is None else self._stamp(item, course_id, assignment_id)

    async def retrieve_submission_summary(self, course: IdOrEntity, assignment: IdOrEntity) -> SubmissionSummary:
        """
        Retrieve the counts of graded, ungraded and missing submissions.

        Raises:
            ClientError: If Canvas did not return a summary
        """
        course_id, assignment_id = resolve_id(course), resolve_id(assignment)
        logger.debug("Retrieving submission summary for assignment %s in course with id %s", assignment_id, course_id)
        summary = await self._connection.retrieve(
            self._assignment_path(course_id, assignment_id, "submission_summary"),
            SubmissionSummary,
        )
        if summary is None:
            raise ClientError("No summary returned from Canvas")
        return self._stamp(summary, course_id, assignment_id)

    async def _update_submission(
        self,
        course_id: int,
        assignment_id: int,
        student_id: int,
        values: Parameters,
    ) -> Submission:
        item = await self._connection.put_form(
            self._assignment_path(course_id, assignment_id, "submissions", student_id),
            Submission,
            values,
        )
        if item is None:
            raise ClientError("No submission returned from Canvas")
        return self._stamp(item, course_id, assignment_id)

    async def add_comment(
        self,
        course: IdOrEntity,
        assignment: IdOrEntity,
        student: IdOrEntity,
        comment: str,
        file: Optional[FileUpload] = None,
    ) -> Submission:
        """
        Add a comment to a student's submission.

        When a file is given it is uploaded first and attached to the comment.
        """
        course_id, assignment_id, student_id = resolve_id(course), resolve_id(assignment), resolve_id(student)
        values = Parameters().add("comment[text_comment]", comment)
        if file is not None:
            logger.debug(
                "Uploading comment file for student %s for %s in %s",
                student_id,
                assignment_id,
                course_id,
            )
            attachment = await self._upload(
                self._assignment_path(course_id, assignment_id, "submissions", student_id, "comments", "files"),
                file,
            )
            values.add("comment[file_ids][]", attachment.id)

        logger.debug("Adding comment to student %s for %s in %s", student_id, assignment_id, course_id)
        return await self._update_submission(course_id, assignment_id, student_id, values)

    async def mark_submission(
        self,
        course: IdOrEntity,
        assignment: IdOrEntity,
        student: IdOrEntity,
        grade: Optional[Union[float, str]],
        comment: Optional[str] = None,
        rubric: Optional[SubmissionRubric] = None,
    ) -> Submission:
        """
        Grade a student's submission.

        Args:
            grade: The grade to post (points, percentage or letter grade)
            comment: An optional comment to add
            rubric: Assessments keyed by rubric criterion id
        """
        course_id, assignment_id, student_id = resolve_id(course), resolve_id(assignment), resolve_id(student)
        values = Parameters()
        if grade is not None:
            values.add("submission[posted_grade]", _format_number(grade))
        if comment:
            values.add("comment[text_comment]", comment)
        for criterion_id, assessment in (rubric or {}).items():
            prefix = f"rubric_assessment[{criterion_id}]"
            if assessment.points is not None:
                values.add(f"{prefix}[points]", _format_number(assessment.points))
            if assessment.rating_id:
                values.add(f"{prefix}[rating_id]", assessment.rating_id)
            if assessment.comments:
                values.add(f"{prefix}[comments]", assessment.comments)

        logger.debug("Marking submission of student %s for %s in %s", student_id, assignment_id, course_id)
        return await self._update_submission(course_id, assignment_id, student_id, values)

    async def update_submission_lateness(
        self,
        course: IdOrEntity,
        assignment: IdOrEntity,
        student: IdOrEntity,
        status: LatePolicyStatus,
        seconds_late: Optional[int] = None,
    ) -> Submission:
        """Set the late policy status (and optionally how late) of a submission."""
        course_id, assignment_id, student_id = resolve_id(course), resolve_id(assignment), resolve_id(student)
        values = Parameters().add("submission[late_policy_status]", status)
        if seconds_late is not None:
            values.add("submission[seconds_late_override]", seconds_late)

        logger.debug("Updating lateness of student %s for %s in %s to %s", student_id, assignment_id, course_id, status)
        return await self._update_submission(course_id, assignment_id, student_id, values)

    async def upload_submission(
        self,
        course: IdOrEntity,
        assignment: IdOrEntity,
        student: IdOrEntity,
        file: FileUpload,
    ) -> Submission:
        """
        Upload a file and submit it on behalf of a student.

        Raises:
            UploadError: If the file upload fails
            ClientError: If Canvas did not return the submission
        """
        course_id, assignment_id, student_id = resolve_id(course), resolve_id(assignment), resolve_id(student)
        logger.debug("Uploading submission file %s for student %s for %s in %s", file, student_id, assignment_id, course_id)
        attachment = await self._upload(
            self._assignment_path(course_id, assignment_id, "submissions", student_id, "files"),
            file,
        )

        values = (
            Parameters()
            .add("submission[submission_type]", "online_upload")
            .add("submission[file_ids][]", attachment.id)
            .add("submission[user_id]", student_id)
        )
        item = await self._connection.post_form(
            self._assignment_path(course_id, assignment_id, "submissions"),
            Submission,
            values,
        )
        if item is None:
            raise ClientError("No submission returned from Canvas")
        return self._stamp(item, course_id, assignment_id)

    # =========================================================================
    # Downloads
    # =========================================================================

    async def download_submission_as_string(self, submission: SubmissionFile) -> str:
        """Download a submitted file as text."""
        logger.debug("Downloading submission from %s", submission.url)
        response = await self._connection.get(submission.url)
        return response.text

    async def download_submission_to_stream(self, submission: SubmissionFile, stream: BinaryIO) -> None:
        """Download a submitted file into a binary stream, chunk by chunk."""
        logger.debug("Downloading submission from %s", submission.url)
        response = await self._connection.get(submission.url, stream=True)
        await self._write_response(response, stream)

    async def download_submission_to_file(self, submission: SubmissionFile, path: Union[str, os.PathLike]) -> None:
        """
        Download a submitted file to disk, replacing any existing file.

        The file is only opened once Canvas has answered successfully.
        """
        logger.debug("Downloading submission from %s to %s", submission.url, path)
        response = await self._connection.get(submission.url, stream=True)
        try:
            stream = open(path, "wb")
        except OSError:
            await response.aclose()
            raise
        with stream:
            await self._write_response(response, stream)

    @staticmethod
    async def _write_response(response: httpx.Response, stream: BinaryIO) -> None:
        try:
            async for chunk in response.aiter_bytes():
                stream.write(chunk)
        finally:
            await response.aclose()
