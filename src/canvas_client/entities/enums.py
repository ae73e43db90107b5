from enum import Enum


class EnrolmentType(str, Enum):
    """Types of course enrolment."""
    STUDENT = "student"
    TEACHER = "teacher"
    TA = "ta"
    OBSERVER = "observer"
    DESIGNER = "designer"


class LatePolicyStatus(str, Enum):
    """Late policy status of a submission."""
    NONE = "none"
    MISSING = "missing"
    EXTENDED = "extended"
    LATE = "late"
