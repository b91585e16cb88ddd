"""Tests for file validation and the local storage backend."""
import pytest

from agencyhub.core.config import settings
from agencyhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from agencyhub.db.enums import StorageBucket, ViewerKind
from agencyhub.schemas.request import RequestCreate
from agencyhub.services import message_service, request_service, storage_service
from agencyhub.services.storage_service import (
    MAX_ATTACHMENT_SIZE_BYTES,
    MAX_ATTACHMENTS_PER_UPLOAD,
    UploadFile,
)


@pytest.fixture(autouse=True)
def local_storage(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", str(tmp_path))
    return tmp_path


@pytest.fixture
def request_row(db, tenant):
    return request_service.create_request(
        db,
        tenant.client_viewer,
        tenant.project.id,
        RequestCreate(title="Broken image", description="See screenshot"),
    )


def _png(name="shot.png", size=16) -> UploadFile:
    return UploadFile(filename=name, content_type="image/png", data=b"\x89PNG" + b"0" * (size - 4))


# =============================================================================
# Validation
# =============================================================================

def test_validate_attachment():
    assert storage_service.validate_attachment("application/pdf", 1024) == (True, None)
    assert storage_service.validate_attachment("application/pdf", MAX_ATTACHMENT_SIZE_BYTES)[0]

    ok, error = storage_service.validate_attachment("application/pdf", MAX_ATTACHMENT_SIZE_BYTES + 1)
    assert not ok and "25 MB" in error

    ok, error = storage_service.validate_attachment("application/x-msdownload", 10)
    assert not ok and "not allowed" in error

    assert storage_service.validate_attachment("text/plain", 0) == (False, "File is empty")


def test_batch_limits():
    storage_service.validate_batch([_png(f"{i}.png") for i in range(MAX_ATTACHMENTS_PER_UPLOAD)])
    with pytest.raises(ValidationError):
        storage_service.validate_batch([_png(f"{i}.png") for i in range(MAX_ATTACHMENTS_PER_UPLOAD + 1)])
    with pytest.raises(ValidationError):
        storage_service.validate_batch([])


def test_one_bad_file_rejects_batch(db, tenant, request_row, local_storage):
    bad = UploadFile(filename="run.exe", content_type="application/x-msdownload", data=b"MZ")
    with pytest.raises(ValidationError):
        storage_service.upload_attachments(db, tenant.client_viewer, request_row, [_png(), bad])

    assert storage_service.list_attachments(db, tenant.staff_viewer, request_row.id) == []
    assert not (local_storage / "attachments").exists()


def test_logo_and_avatar_limits(db, tenant):
    with pytest.raises(ValidationError):
        storage_service.upload_logo(
            db, tenant.owner_viewer, UploadFile("logo.gif", "image/gif", b"GIF89a")
        )
    with pytest.raises(ValidationError):
        storage_service.upload_avatar(
            db, tenant.staff.id, UploadFile("me.png", "image/png", b"0" * (2 * 1024 * 1024 + 1))
        )


# =============================================================================
# Keys and backend
# =============================================================================

def test_key_layouts(tenant):
    key = storage_service.attachment_key(tenant.agency.id, "Report.PDF", "application/pdf")
    assert key.startswith(f"{tenant.agency.id}/")
    assert key.endswith(".pdf")
    assert storage_service.logo_key(tenant.agency.id, "logo", "image/png") == f"{tenant.agency.id}.png"
    assert storage_service.avatar_key(tenant.staff.id, "a.jpeg", "image/jpeg") == f"{tenant.staff.id}.jpeg"


def test_local_round_trip_and_traversal():
    storage_service.store_file(StorageBucket.LOGOS, "a.png", b"data", "image/png")
    assert storage_service.read_file(StorageBucket.LOGOS, "a.png") == b"data"
    assert storage_service.file_url(StorageBucket.LOGOS, "a.png") == "/files/logos/a.png"

    with pytest.raises(ValidationError):
        storage_service.read_file(StorageBucket.LOGOS, "../attachments/x")
    with pytest.raises(NotFoundError):
        storage_service.read_file(StorageBucket.LOGOS, "missing.png")


def test_logo_replaced_on_reupload(db, tenant, local_storage):
    storage_service.upload_logo(db, tenant.owner_viewer, UploadFile("logo.png", "image/png", b"one"))
    agency = storage_service.upload_logo(
        db, tenant.owner_viewer, UploadFile("logo.jpg", "image/jpeg", b"two")
    )
    assert agency.logo_path == f"{tenant.agency.id}.jpg"
    assert sorted(p.name for p in (local_storage / "logos").iterdir()) == [f"{tenant.agency.id}.jpg"]


def test_staff_only_logo(db, tenant):
    with pytest.raises(PermissionDeniedError):
        storage_service.upload_logo(db, tenant.staff_viewer, UploadFile("l.png", "image/png", b"x"))


# =============================================================================
# Attachments
# =============================================================================

def test_internal_message_files_hidden_from_clients(db, tenant, request_row):
    note = message_service.create_message(
        db, tenant.staff_viewer, request_row, "Internal diff", is_internal=True
    )
    public, = storage_service.upload_attachments(db, tenant.client_viewer, request_row, [_png("a.png")])
    hidden, = storage_service.upload_attachments(
        db, tenant.staff_viewer, request_row, [_png("b.png")], message=note
    )

    client_ids = [a.id for a in storage_service.list_attachments(db, tenant.client_viewer, request_row.id)]
    staff_ids = [a.id for a in storage_service.list_attachments(db, tenant.staff_viewer, request_row.id)]
    assert client_ids == [public.id]
    assert set(staff_ids) == {public.id, hidden.id}

    with pytest.raises(NotFoundError):
        storage_service.get_attachment(db, tenant.client_viewer, hidden.id)


def test_delete_attachment_rules(db, tenant, request_row):
    mine, = storage_service.upload_attachments(db, tenant.staff_viewer, request_row, [_png()])
    with pytest.raises(PermissionDeniedError):
        storage_service.delete_attachment(db, tenant.client_viewer, mine)
    storage_service.delete_attachment(db, tenant.staff_viewer, mine)
    assert storage_service.list_attachments(db, tenant.staff_viewer, request_row.id) == []


@pytest.mark.asyncio
async def test_upload_and_download_over_http(client_for, tenant, other_tenant, request_row):
    async with client_for(tenant.client, tenant.agency, ViewerKind.CLIENT) as c:
        response = await c.post(
            f"/requests/{request_row.id}/attachments",
            files=[("files", ("shot.png", b"\x89PNGdata", "image/png"))],
        )
        assert response.status_code == 201
        attachment = response.json()[0]
        assert attachment["filename"] == "shot.png"

        response = await c.get(attachment["download_url"])
        assert response.status_code == 200
        assert response.content == b"\x89PNGdata"

    async with client_for(other_tenant.staff, other_tenant.agency, ViewerKind.STAFF) as outsider:
        response = await outsider.get(attachment["download_url"])
        assert response.status_code == 404
