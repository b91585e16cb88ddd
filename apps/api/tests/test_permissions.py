"""Tests for the viewer capability registry."""
import uuid

import pytest

from agencyhub.core.exceptions import PermissionDeniedError
from agencyhub.core.permissions import CAPABILITIES, Viewer, has_capability, require_capability
from agencyhub.db.enums import ViewerKind


def _viewer(kind: ViewerKind) -> Viewer:
    return Viewer(kind=kind, user_id=uuid.uuid4(), agency_id=uuid.uuid4())


def test_viewer_flags():
    assert _viewer(ViewerKind.CLIENT).is_client
    assert not _viewer(ViewerKind.CLIENT).is_staff
    assert _viewer(ViewerKind.STAFF).is_staff
    assert not _viewer(ViewerKind.STAFF).is_owner
    owner = _viewer(ViewerKind.OWNER)
    assert owner.is_staff and owner.is_owner


def test_owner_holds_every_staff_capability():
    for capability, kinds in CAPABILITIES.items():
        if ViewerKind.STAFF in kinds:
            assert ViewerKind.OWNER in kinds, capability


@pytest.mark.parametrize(
    "capability",
    ["view_internal_messages", "post_internal_messages", "log_time", "assign_request", "manage_tags"],
)
def test_client_lacks_staff_capabilities(capability):
    assert not has_capability(_viewer(ViewerKind.CLIENT), capability)


def test_only_clients_rate():
    assert has_capability(_viewer(ViewerKind.CLIENT), "submit_rating")
    assert not has_capability(_viewer(ViewerKind.STAFF), "submit_rating")
    assert not has_capability(_viewer(ViewerKind.OWNER), "submit_rating")


def test_billing_and_team_are_owner_only():
    for capability in ("manage_billing", "invite_staff", "manage_agency"):
        assert has_capability(_viewer(ViewerKind.OWNER), capability)
        assert not has_capability(_viewer(ViewerKind.STAFF), capability)


def test_unknown_capability_is_denied():
    assert not has_capability(_viewer(ViewerKind.OWNER), "launch_rockets")


def test_require_capability_raises():
    with pytest.raises(PermissionDeniedError):
        require_capability(_viewer(ViewerKind.CLIENT), "delete_request")
