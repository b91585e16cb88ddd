"""SQLAlchemy ORM models.

Importing this package registers every table on Base.metadata.
"""

from agencyhub.db.models.agencies import Agency, AgencyMember, User
from agencyhub.db.models.attachments import Attachment
from agencyhub.db.models.automation import AutomationRule
from agencyhub.db.models.notifications import Notification
from agencyhub.db.models.projects import Project, ProjectMember, ProjectNote
from agencyhub.db.models.ratings import SatisfactionRating
from agencyhub.db.models.requests import (
    Request,
    RequestActivity,
    RequestAssignment,
    RequestMessage,
    RequestTag,
    Tag,
)
from agencyhub.db.models.templates import RequestTemplate
from agencyhub.db.models.time_entries import TimeEntry

__all__ = [
    "Agency",
    "AgencyMember",
    "Attachment",
    "AutomationRule",
    "Notification",
    "Project",
    "ProjectMember",
    "ProjectNote",
    "Request",
    "RequestActivity",
    "RequestAssignment",
    "RequestMessage",
    "RequestTag",
    "RequestTemplate",
    "SatisfactionRating",
    "Tag",
    "TimeEntry",
    "User",
]
