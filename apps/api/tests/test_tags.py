"""Tests for the tag catalog and request tagging."""
import pytest

from agencyhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from agencyhub.db.enums import TagColor
from agencyhub.db.models import RequestTag
from agencyhub.schemas.request import RequestCreate
from agencyhub.services import request_service, tag_service


@pytest.fixture
def request_row(db, tenant):
    return request_service.create_request(
        db,
        tenant.client_viewer,
        tenant.project.id,
        RequestCreate(title="New hero image", description="Swap the homepage hero"),
    )


def test_color_style_lookup():
    assert tag_service.tag_color_style("red") == ("bg-red-100", "text-red-800", "border-red-200")


def test_unknown_color_falls_back_to_gray():
    gray = tag_service.tag_color_style("gray")
    assert tag_service.tag_color_style("chartreuse") == gray
    assert tag_service.tag_color_style(None) == gray


def test_tag_read_carries_style(db, tenant):
    tag = tag_service.create_tag(db, tenant.staff_viewer, "Design", TagColor.PURPLE)
    read = tag_service.to_tag_read(tag)
    assert read.color == "purple"
    assert read.style.background == "bg-purple-100"


def test_tag_names_unique_case_insensitive(db, tenant, other_tenant):
    tag_service.create_tag(db, tenant.staff_viewer, "Design")
    with pytest.raises(ValidationError):
        tag_service.create_tag(db, tenant.staff_viewer, "  design ")

    # Other agencies have their own namespace
    tag_service.create_tag(db, other_tenant.staff_viewer, "Design")


def test_rename_into_existing_name_rejected(db, tenant):
    tag_service.create_tag(db, tenant.staff_viewer, "Design")
    backend = tag_service.create_tag(db, tenant.staff_viewer, "Backend")
    with pytest.raises(ValidationError):
        tag_service.update_tag(db, tenant.staff_viewer, backend.id, name="DESIGN")

    renamed = tag_service.update_tag(db, tenant.staff_viewer, backend.id, name="backend")
    assert renamed.name == "backend"


def test_client_cannot_manage_tags(db, tenant):
    with pytest.raises(PermissionDeniedError):
        tag_service.create_tag(db, tenant.client_viewer, "Mine")


def test_set_request_tags_replaces_set(db, tenant, request_row):
    a = tag_service.create_tag(db, tenant.staff_viewer, "A")
    b = tag_service.create_tag(db, tenant.staff_viewer, "B")
    c = tag_service.create_tag(db, tenant.staff_viewer, "C")

    tag_service.set_request_tags(db, tenant.staff_viewer, request_row, [a.id, b.id])
    tags = tag_service.set_request_tags(db, tenant.staff_viewer, request_row, [b.id, c.id])

    assert {t.id for t in tags} == {b.id, c.id}


def test_set_request_tags_rejects_foreign_tag(db, tenant, other_tenant, request_row):
    mine = tag_service.create_tag(db, tenant.staff_viewer, "Mine")
    theirs = tag_service.create_tag(db, other_tenant.staff_viewer, "Theirs")

    with pytest.raises(NotFoundError):
        tag_service.set_request_tags(db, tenant.staff_viewer, request_row, [mine.id, theirs.id])
    assert db.query(RequestTag).count() == 0


def test_add_and_remove_are_idempotent(db, tenant, request_row):
    tag = tag_service.create_tag(db, tenant.staff_viewer, "Urgent fix")

    assert tag_service.add_tag(db, request_row, tag.id, tenant.staff.id) is True
    db.commit()
    assert tag_service.add_tag(db, request_row, tag.id, tenant.staff.id) is False

    assert tag_service.remove_tag(db, request_row, tag.id, tenant.staff.id) is True
    db.commit()
    assert tag_service.remove_tag(db, request_row, tag.id, tenant.staff.id) is False


def test_delete_tag_detaches_from_requests(db, tenant, request_row):
    tag = tag_service.create_tag(db, tenant.staff_viewer, "Temp")
    tag_service.set_request_tags(db, tenant.staff_viewer, request_row, [tag.id])

    tag_service.delete_tag(db, tenant.staff_viewer, tag.id)

    assert db.query(RequestTag).count() == 0
    assert tag_service.list_tags(db, tenant.agency.id) == []
