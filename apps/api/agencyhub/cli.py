"""CLI tools for AgencyHub administration."""

import logging
from datetime import datetime, timezone

import click

from agencyhub.core.exceptions import AgencyHubError
from agencyhub.db.models import User
from agencyhub.db.session import SessionLocal
from agencyhub.services import agency_service, auth_service, automation_engine


@click.group()
@click.option("--verbose", is_flag=True, help="Log at INFO level")
def cli(verbose: bool):
    """AgencyHub CLI tools."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


@cli.command()
@click.option("--name", required=True, help="Agency name")
@click.option("--owner-name", required=True, help="Owner display name")
@click.option("--owner-email", required=True, help="Owner email address")
@click.password_option("--password", help="Owner password")
def create_agency(name: str, owner_name: str, owner_email: str, password: str):
    """
    Create an agency and its owner account.

    Example:
        python -m agencyhub.cli create-agency --name "Acme Studio" \\
            --owner-name "Ada Owner" --owner-email "ada@acme.test"
    """
    if len(password) < 8:
        raise click.BadParameter("Password must be at least 8 characters", param_hint="--password")

    db = SessionLocal()
    try:
        agency, user = agency_service.create_agency_with_owner(
            db, name, owner_name, owner_email, password
        )
        click.echo(f"✓ Created agency: {agency.name}")
        click.echo(f"  ID: {agency.id}")
        click.echo(f"  Slug: {agency.slug}")
        click.echo(f"✓ Owner: {user.email}")
    except AgencyHubError as e:
        db.rollback()
        raise click.ClickException(str(e))
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        python -m agencyhub.cli revoke-sessions --email "user@example.com"
    """
    db = SessionLocal()
    try:
        user = agency_service.get_user_by_email(db, email)
        if not user:
            raise click.ClickException(f"User not found: {email}")

        old_version = user.token_version
        auth_service.revoke_sessions(db, user)
        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  Token version: {old_version} → {user.token_version}")
    finally:
        db.close()


@cli.command()
def run_overdue_sweep():
    """
    Fire request_overdue automation rules for every overdue request.

    Meant to run from a scheduler once a day.

    Example:
        python -m agencyhub.cli run-overdue-sweep
    """
    db = SessionLocal()
    try:
        results = automation_engine.run_overdue_sweep(db, datetime.now(timezone.utc))
        runs = [run for request_runs in results.values() for run in request_runs]
        failed = [run for run in runs if not run.success]
        click.echo(f"✓ Processed {len(results)} overdue requests")
        click.echo(f"  Rule runs: {len(runs)} ({len(failed)} failed)")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email")
def deactivate_user(email: str):
    """Disable a user account and revoke its sessions."""
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if not user:
            raise click.ClickException(f"User not found: {email}")
        user.is_active = False
        auth_service.revoke_sessions(db, user)
        click.echo(f"✓ Deactivated {email}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
