"""
Base classes for Canvas entities.

Entities with an id compare equal when they are of the same type and share
the same id, regardless of any other field.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Entity(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class EntityWithId(Entity):
    id: int = 0

    def __eq__(self, other: Any) -> bool:
        if self is other:
            return True
        if not isinstance(other, EntityWithId) or type(other) is not type(self):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))


class EntityWithIdAndName(EntityWithId):
    name: str = ""

    def __lt__(self, other: "EntityWithIdAndName") -> bool:
        if not isinstance(other, EntityWithIdAndName):
            return NotImplemented
        return self.name < other.name


class CourseEntity(EntityWithId):
    """An entity that belongs to a course; ``course_id`` is set by the client."""

    course_id: int = Field(0, exclude=True)

    def for_course(self, course_id: int) -> Any:
        return self.model_copy(update={"course_id": course_id})
