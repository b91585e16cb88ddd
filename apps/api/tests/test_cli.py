"""Tests for the administration CLI."""
from datetime import date

import pytest
from click.testing import CliRunner

from agencyhub import cli as cli_module
from agencyhub.db.models import User
from agencyhub.schemas.request import RequestCreate
from agencyhub.services import request_service


@pytest.fixture
def runner(db, monkeypatch):
    monkeypatch.setattr(cli_module, "SessionLocal", lambda: db)
    # Commands close their session; keep the shared test session usable
    monkeypatch.setattr(db, "close", lambda: None)
    return CliRunner()


def test_create_agency(runner, db):
    result = runner.invoke(
        cli_module.cli,
        [
            "create-agency",
            "--name", "Acme Studio",
            "--owner-name", "Ada Owner",
            "--owner-email", "ada@acme.test",
            "--password", "long-password",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Slug: acme-studio" in result.output
    assert db.query(User).filter(User.email == "ada@acme.test").count() == 1


def test_create_agency_duplicate_email(runner, tenant):
    result = runner.invoke(
        cli_module.cli,
        [
            "create-agency",
            "--name", "Dup",
            "--owner-name", "Dup",
            "--owner-email", tenant.owner.email,
            "--password", "long-password",
        ],
    )
    assert result.exit_code != 0
    assert "already exists" in result.output


def test_revoke_sessions(runner, db, tenant):
    before = tenant.staff.token_version
    result = runner.invoke(cli_module.cli, ["revoke-sessions", "--email", tenant.staff.email])
    assert result.exit_code == 0
    db.refresh(tenant.staff)
    assert tenant.staff.token_version == before + 1


def test_run_overdue_sweep(runner, db, tenant):
    request_service.create_request(
        db,
        tenant.client_viewer,
        tenant.project.id,
        RequestCreate(title="Late", description="d", due_date=date(2020, 1, 1)),
    )
    result = runner.invoke(cli_module.cli, ["run-overdue-sweep"])
    assert result.exit_code == 0
    assert "Processed 1 overdue requests" in result.output


def test_deactivate_user(runner, db, tenant):
    result = runner.invoke(cli_module.cli, ["deactivate-user", "--email", tenant.client.email])
    assert result.exit_code == 0
    db.refresh(tenant.client)
    assert tenant.client.is_active is False
