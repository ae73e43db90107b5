"""
Resource clients for the Canvas REST API.
"""

from canvas_client.endpoints.accounts import AccountsClient
from canvas_client.endpoints.assignments import AssignmentsClient
from canvas_client.endpoints.base import BaseEndpointClient, resolve_id
from canvas_client.endpoints.courses import CoursesClient
from canvas_client.endpoints.current_user import CurrentUserClient
from canvas_client.endpoints.terms import TermsClient

__all__ = [
    "AccountsClient",
    "AssignmentsClient",
    "BaseEndpointClient",
    "CoursesClient",
    "CurrentUserClient",
    "TermsClient",
    "resolve_id",
]
