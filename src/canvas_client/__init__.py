"""
Canvas Client Library.

A typed async client for the Canvas LMS REST API.

Example usage:
    ```python
    from canvas_client import ClientConfiguration

    async with ClientConfiguration().via_http(url, token).build() as client:
        # The current user
        user = await client.current_user.get()

        # Paginated lists are async iterators
        async for course in client.courses.list_for_current_user():
            print(course.name)

        # Single entities are None when they do not exist
        course = await client.courses.retrieve(1234)
    ```
"""

__version__ = "0.1.0"

# Main client
from canvas_client.client import Client
from canvas_client.configuration import CanvasSettings, ClientConfiguration, log_incoming_content

# HTTP connection (for advanced usage)
from canvas_client.connection import Connection

# Request parameters and settings
from canvas_client.parameters import Parameter, Parameters
from canvas_client.settings import (
    AssignmentInclude,
    AssignmentItem,
    AssignmentList,
    CourseInclude,
    CourseItem,
    CourseList,
    ListSettings,
    SubmissionInclude,
    SubmissionList,
)

# Exceptions
from canvas_client.exceptions import (
    # Base exception
    CanvasClientError,
    # Connection errors
    ConnectionError,
    NoResponseError,
    CanvasError,
    # Client errors
    ClientError,
    ValidationError,
    UploadError,
    # Configuration errors
    ConfigurationError,
)

__all__ = [
    # Version
    "__version__",
    # Main client
    "Client",
    "ClientConfiguration",
    "CanvasSettings",
    "log_incoming_content",
    # Connection
    "Connection",
    # Parameters and settings
    "Parameter",
    "Parameters",
    "ListSettings",
    "CourseList",
    "CourseItem",
    "CourseInclude",
    "AssignmentList",
    "AssignmentItem",
    "AssignmentInclude",
    "SubmissionList",
    "SubmissionInclude",
    # Exceptions
    "CanvasClientError",
    "ConnectionError",
    "NoResponseError",
    "CanvasError",
    "ClientError",
    "ValidationError",
    "UploadError",
    "ConfigurationError",
]
