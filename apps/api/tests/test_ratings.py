"""Tests for satisfaction ratings."""
import pytest

from agencyhub.core.exceptions import PermissionDeniedError, ValidationError
from agencyhub.db.enums import RequestStatus
from agencyhub.schemas.request import RequestCreate
from agencyhub.services import project_service, rating_service, request_service


def _completed_request(db, tenant, title="Fix logo"):
    request = request_service.create_request(
        db,
        tenant.client_viewer,
        tenant.project.id,
        RequestCreate(title=title, description="Details"),
    )
    request_service.update_request(db, tenant.staff_viewer, request, {"status": RequestStatus.COMPLETE})
    return request


def test_resubmitting_updates_the_same_rating(db, tenant):
    request = _completed_request(db, tenant)

    first = rating_service.submit_rating(db, tenant.client_viewer, request, 4, "Good")
    second = rating_service.submit_rating(db, tenant.client_viewer, request, 5, "Great")

    assert first.id == second.id
    assert rating_service.get_rating(db, request.id).rating == 5
    assert rating_service.get_rating(db, request.id).feedback == "Great"


def test_only_completed_requests_can_be_rated(db, tenant):
    request = request_service.create_request(
        db, tenant.client_viewer, tenant.project.id, RequestCreate(title="t", description="d")
    )
    with pytest.raises(ValidationError):
        rating_service.submit_rating(db, tenant.client_viewer, request, 5)


@pytest.mark.parametrize("value", [0, 6])
def test_rating_range(db, tenant, value):
    request = _completed_request(db, tenant)
    with pytest.raises(ValidationError):
        rating_service.submit_rating(db, tenant.client_viewer, request, value)


def test_only_author_client_rates(db, tenant):
    request = _completed_request(db, tenant)
    with pytest.raises(PermissionDeniedError):
        rating_service.submit_rating(db, tenant.staff_viewer, request, 5)


def test_agency_stats_round_half_up(db, tenant, other_tenant):
    for value in (4, 5):
        request = _completed_request(db, tenant, title=f"r{value}")
        rating_service.submit_rating(db, tenant.client_viewer, request, value)
    request = _completed_request(db, other_tenant)
    rating_service.submit_rating(db, other_tenant.client_viewer, request, 1)

    assert rating_service.agency_rating_stats(db, tenant.agency.id) == {"average": 4.5, "count": 2}


def test_agency_stats_empty(db, tenant):
    assert rating_service.agency_rating_stats(db, tenant.agency.id) == {"average": None, "count": 0}


def test_agency_stats_skip_deleted_projects(db, tenant):
    request = _completed_request(db, tenant)
    rating_service.submit_rating(db, tenant.client_viewer, request, 2)
    assert rating_service.agency_rating_stats(db, tenant.agency.id)["count"] == 1

    project_service.delete_project(db, tenant.owner_viewer, tenant.project)
    assert rating_service.agency_rating_stats(db, tenant.agency.id) == {"average": None, "count": 0}
