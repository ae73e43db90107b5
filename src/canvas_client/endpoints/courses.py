import logging
from typing import AsyncIterator, Optional

from canvas_client.connection import Connection
from canvas_client.endpoints.assignments import AssignmentsClient
from canvas_client.endpoints.base import API_PATH, BaseEndpointClient, IdOrEntity, resolve_id
from canvas_client.entities.courses import Course
from canvas_client.settings import CourseInclude, CourseItem, CourseList

logger = logging.getLogger(__name__)


class CoursesClient(BaseEndpointClient):
    """
    Client for courses endpoints.

    Every course is returned with its term included.
    """

    def __init__(self, connection: Connection) -> None:
        super().__init__(connection)
        self._assignments: Optional[AssignmentsClient] = None

    @property
    def assignments(self) -> AssignmentsClient:
        """Client for the assignments of a course."""
        if self._assignments is None:
            self._assignments = AssignmentsClient(self._connection)
        return self._assignments

    def list_for_current_user(self, settings: Optional[CourseList] = None) -> AsyncIterator[Course]:
        """List the active courses of the current user."""
        settings = (settings or CourseList()).with_include(CourseInclude.TERM)
        logger.debug("Listing courses for current user")
        return self._connection.list(self._build_path("courses"), Course, settings)

    def list_for_account(
        self,
        account: IdOrEntity,
        settings: Optional[CourseList] = None,
    ) -> AsyncIterator[Course]:
        """List the courses in an account."""
        account_id = resolve_id(account)
        settings = (settings or CourseList()).with_include(CourseInclude.TERM)
        logger.debug("Listing courses for account with id %s", account_id)
        return self._connection.list(self._build_path("accounts", account_id, "courses"), Course, settings)

    async def retrieve(self, course: IdOrEntity, settings: Optional[CourseItem] = None) -> Optional[Course]:
        """Retrieve a single course, or None if it does not exist."""
        course_id = resolve_id(course)
        settings = (settings or CourseItem()).with_include(CourseInclude.TERM)
        logger.debug("Retrieving course with id %s", course_id)
        return await self._connection.retrieve(
            self._build_path("courses", course_id),
            Course,
            settings.to_parameters(),
        )
