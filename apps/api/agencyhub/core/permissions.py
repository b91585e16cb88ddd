"""Viewer variant and capability registry.

Every authorization decision in the service layer goes through this module.
A viewer is one of Client | Staff | Owner, always scoped to one agency.
Owners hold every staff capability plus team and billing management.
"""

from dataclasses import dataclass
from uuid import UUID

from agencyhub.core.exceptions import PermissionDeniedError
from agencyhub.db.enums import OWNER_VIEWERS, STAFF_VIEWERS, ViewerKind


@dataclass(frozen=True)
class Viewer:
    """Who is acting, and in which agency."""
    kind: ViewerKind
    user_id: UUID
    agency_id: UUID

    @property
    def is_client(self) -> bool:
        return self.kind == ViewerKind.CLIENT

    @property
    def is_staff(self) -> bool:
        """True for staff and owners."""
        return self.kind in STAFF_VIEWERS

    @property
    def is_owner(self) -> bool:
        return self.kind in OWNER_VIEWERS


ALL_VIEWERS = frozenset(ViewerKind)


# =============================================================================
# Capability Registry
# =============================================================================

CAPABILITIES: dict[str, frozenset[ViewerKind]] = {
    # Requests
    "create_request": ALL_VIEWERS,
    "edit_request": frozenset(STAFF_VIEWERS),
    "change_status": frozenset(STAFF_VIEWERS),
    "delete_request": frozenset(STAFF_VIEWERS),
    "assign_request": frozenset(STAFF_VIEWERS),
    # Threads
    "view_internal_messages": frozenset(STAFF_VIEWERS),
    "post_internal_messages": frozenset(STAFF_VIEWERS),
    "moderate_messages": frozenset(STAFF_VIEWERS),
    # Time
    "log_time": frozenset(STAFF_VIEWERS),
    "view_time": frozenset(STAFF_VIEWERS),
    # Ratings
    "submit_rating": frozenset({ViewerKind.CLIENT}),
    "view_rating_stats": frozenset(STAFF_VIEWERS),
    # Catalogs
    "manage_tags": frozenset(STAFF_VIEWERS),
    "manage_templates": frozenset(STAFF_VIEWERS),
    "manage_automation": frozenset(STAFF_VIEWERS),
    "manage_projects": frozenset(STAFF_VIEWERS),
    "manage_notes": frozenset(STAFF_VIEWERS),
    "view_activity": frozenset(STAFF_VIEWERS),
    # Team
    "invite_clients": frozenset(STAFF_VIEWERS),
    "invite_staff": frozenset(OWNER_VIEWERS),
    "manage_agency": frozenset(OWNER_VIEWERS),
    # Billing
    "manage_billing": frozenset(OWNER_VIEWERS),
}


def has_capability(viewer: Viewer, capability: str) -> bool:
    """Check a capability. Unknown capability keys are denied."""
    allowed = CAPABILITIES.get(capability)
    if allowed is None:
        return False
    return viewer.kind in allowed


def require_capability(viewer: Viewer, capability: str) -> None:
    """
    Raise PermissionDeniedError unless the viewer holds the capability.
    """
    if not has_capability(viewer, capability):
        raise PermissionDeniedError(
            f"Viewer '{viewer.kind.value}' not authorized to {capability.replace('_', ' ')}"
        )
