"""Enum definitions for application constants."""

from enum import Enum


class AgencyRole(str, Enum):
    """
    Agency membership roles.

    - OWNER: created the agency; billing, team management, everything staff can do
    - STAFF: works requests (assign, status, internal thread, time log)
    """
    OWNER = "owner"
    STAFF = "staff"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class ViewerKind(str, Enum):
    """Who is looking at the data: a client of a project or a member of the agency."""
    CLIENT = "client"
    STAFF = "staff"
    OWNER = "owner"


class RequestType(str, Enum):
    """Kinds of client requests."""
    BUG = "bug"
    CHANGE = "change"
    FEATURE = "feature"
    QUESTION = "question"


class RequestPriority(str, Enum):
    NORMAL = "normal"
    URGENT = "urgent"


class RequestStatus(str, Enum):
    """
    Request status.

    submitted → in_progress → complete. Any state can be set from any state;
    completion fields are stamped on entry to complete and cleared on exit.
    """
    SUBMITTED = "submitted"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class DueDateState(str, Enum):
    """Derived (never stored) due-date classification."""
    NONE = "none"
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    DUE_SOON = "due_soon"
    UPCOMING = "upcoming"


class DueDateFilter(str, Enum):
    """Due-date buckets accepted by the request list filter."""
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    DUE_THIS_WEEK = "due_this_week"
    NO_DUE_DATE = "no_due_date"


class RequestSortField(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    PRIORITY = "priority"
    DUE_DATE = "due_date"


class ProjectStatus(str, Enum):
    ACTIVE = "active"  # Ongoing work, requests accepted
    ON_HOLD = "on_hold"  # Paused, requests queued
    COMPLETED = "completed"  # Work finished, read-only for client
    ARCHIVED = "archived"  # Removed from active lists


class TagColor(str, Enum):
    """Fixed tag palette."""
    GRAY = "gray"
    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    PURPLE = "purple"
    PINK = "pink"


class AutomationTrigger(str, Enum):
    """Request lifecycle events that can fire an automation rule."""
    REQUEST_CREATED = "request_created"
    REQUEST_STATUS_CHANGED = "request_status_changed"
    REQUEST_ASSIGNED = "request_assigned"
    REQUEST_OVERDUE = "request_overdue"


class AutomationAction(str, Enum):
    """Mutations an automation rule can apply to a request."""
    ASSIGN_USER = "assign_user"
    SET_PRIORITY = "set_priority"
    ADD_TAG = "add_tag"
    SEND_NOTIFICATION = "send_notification"
    CHANGE_STATUS = "change_status"


class NotificationType(str, Enum):
    """Types of in-app notifications."""
    NEW_REQUEST = "new_request"
    STATUS_CHANGED = "status_changed"
    NEW_REPLY = "new_reply"
    ASSIGNMENT = "assignment"
    INVITATION = "invitation"
    AUTOMATION = "automation"
    TIER_LIMIT_WARNING = "tier_limit_warning"


class RequestActivityType(str, Enum):
    """Types of activities logged in request history."""
    REQUEST_CREATED = "request_created"
    STATUS_CHANGED = "status_changed"
    PRIORITY_CHANGED = "priority_changed"
    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"
    MESSAGE_ADDED = "message_added"
    TAG_ADDED = "tag_added"
    TAG_REMOVED = "tag_removed"
    TIME_LOGGED = "time_logged"
    RATED = "rated"
    DELETED = "deleted"


class Tier(str, Enum):
    """Subscription plans, cheapest first."""
    FREE = "free"
    STARTER = "starter"
    GROWTH = "growth"
    SCALE = "scale"
    ENTERPRISE = "enterprise"


class BillingInterval(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"


class StorageBucket(str, Enum):
    """Logical storage buckets."""
    ATTACHMENTS = "attachments"
    LOGOS = "logos"
    AVATARS = "avatars"


class InvitationKind(str, Enum):
    """Staff invites join an agency; client invites join a project."""
    STAFF = "staff"
    CLIENT = "client"


# =============================================================================
# Role Permission Sets
# =============================================================================

STAFF_VIEWERS = {ViewerKind.STAFF, ViewerKind.OWNER}
OWNER_VIEWERS = {ViewerKind.OWNER}
