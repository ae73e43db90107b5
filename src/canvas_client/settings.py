"""
List and item settings.

Settings render into :class:`Parameters`. Paging parameters always come first
(``per_page`` then ``page``), followed by the resource specific filters in the
order each settings class lists them. ``max_pages`` is never rendered: it
limits how many pages the connection will fetch.
"""

from enum import Flag, KEEP
from typing import Any, ClassVar, List, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from canvas_client.entities.enums import EnrolmentType
from canvas_client.parameters import Parameters

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50


class CourseInclude(Flag):
    """Additional data to include with courses."""
    NONE = 0
    TERM = 1
    TEACHERS = 2
    TOTAL_STUDENTS = 4


class AssignmentInclude(Flag):
    """Additional data to include with assignments."""
    NONE = 0
    ALL_DATES = 1


class SubmissionInclude(Flag, boundary=KEEP):
    """Additional data to include with submissions."""
    NONE = 0
    USER = 1
    SUBMISSION_COMMENTS = 2
    RUBRIC_ASSESSMENT = 4
    ALL = 255


class Filter(NamedTuple):
    """Maps a settings field onto a query parameter."""

    parameter: str
    field: str

    def apply(self, settings: "Settings", parameters: Parameters) -> None:
        value: Any = getattr(settings, self.field)
        if value is None or (isinstance(value, Flag) and not value):
            return
        for item in value if isinstance(value, list) else [value]:
            parameters.add(self.parameter, item)


class Settings(BaseModel):
    """
    Base class for anything that renders into request parameters.

    Subclasses list their filters in order; each one contributes its
    parameters after the base parameters.
    """

    model_config = ConfigDict(validate_assignment=True)

    filters: ClassVar[Tuple[Filter, ...]] = ()

    def to_parameters(self) -> Parameters:
        parameters = self._base_parameters()
        for item in self.filters:
            item.apply(self, parameters)
        return parameters

    def _base_parameters(self) -> Parameters:
        return Parameters()


class ListSettings(Settings):
    """
    Settings for a paginated list.

    Attributes:
        page_size: Items per page; values above MAX_PAGE_SIZE are clamped
        page_start: The page to start on
        max_pages: The maximum number of pages to fetch (None for no limit)
    """

    page_size: Optional[int] = DEFAULT_PAGE_SIZE
    page_start: Optional[int] = None
    max_pages: Optional[int] = Field(None, ge=0)

    def _base_parameters(self) -> Parameters:
        page_size = self.page_size if self.page_size is not None else DEFAULT_PAGE_SIZE
        parameters = Parameters().add("per_page", min(page_size, MAX_PAGE_SIZE))
        if self.page_start is not None:
            parameters.add("page", self.page_start)
        return parameters

    def allows_page(self, page_number: int) -> bool:
        """Check whether the given (1-based) page may be fetched."""
        return self.max_pages is None or page_number <= self.max_pages


INCLUDE = Filter("include[]", "options")


class CourseList(ListSettings):
    enrolment_type: Optional[EnrolmentType] = None
    options: CourseInclude = CourseInclude.NONE
    term_id: Optional[int] = None

    filters: ClassVar[Tuple[Filter, ...]] = (
        Filter("enrollment_type", "enrolment_type"),
        INCLUDE,
        Filter("enrollment_term_id", "term_id"),
    )

    def with_include(self, include: CourseInclude) -> "CourseList":
        return self.model_copy(update={"options": self.options | include})


class AssignmentList(ListSettings):
    options: AssignmentInclude = AssignmentInclude.NONE

    filters: ClassVar[Tuple[Filter, ...]] = (INCLUDE,)


class SubmissionList(ListSettings):
    options: SubmissionInclude = SubmissionInclude.NONE

    filters: ClassVar[Tuple[Filter, ...]] = (INCLUDE,)

    def with_include(self, include: SubmissionInclude) -> "SubmissionList":
        return self.model_copy(update={"options": self.options | include})


class CourseItem(Settings):
    """Settings for retrieving a single course."""

    enrolment_types: List[EnrolmentType] = Field(default_factory=list)
    options: CourseInclude = CourseInclude.NONE

    filters: ClassVar[Tuple[Filter, ...]] = (
        INCLUDE,
        Filter("enrollment_type", "enrolment_types"),
    )

    def with_include(self, include: CourseInclude) -> "CourseItem":
        return self.model_copy(update={"options": self.options | include})


class AssignmentItem(Settings):
    """Settings for retrieving a single assignment."""

    options: AssignmentInclude = AssignmentInclude.NONE

    filters: ClassVar[Tuple[Filter, ...]] = (INCLUDE,)
