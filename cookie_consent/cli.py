"""Command-line administration for cookie policies.

Policies are authored as JSON documents ({"cookiePolicy": {...}}) and moved
in and out of the database with `export` and `import`; `activate` switches
the policy served to visitors.
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from cookie_consent.config import settings
from cookie_consent.database import AsyncSessionLocal
from cookie_consent.exceptions import ConsentError, PolicyNotFoundError
from cookie_consent.services import audit_service, policy_service

app = typer.Typer(
    name="consent-admin",
    help="Manage cookie policies and the consent audit log",
    add_completion=False,
)


def _fail(error: ConsentError) -> None:
    typer.secho(f"Error: {error.message}", fg=typer.colors.RED, err=True)
    validation_errors = error.details.get("validation_errors", [])
    for item in validation_errors:
        typer.secho(f"  {item['field']}: {item['message']}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.command(name="export")
def export_policy(
    file: Annotated[Path, typer.Argument(help="Destination JSON file")],
    version: Annotated[
        Optional[str], typer.Option("--version", "-v", help="Policy version to export (default: the active policy)")
    ] = None,
    pretty: Annotated[bool, typer.Option("--pretty", help="Indent the JSON output")] = False,
):
    """Export a cookie policy to a JSON file."""

    async def _export() -> dict:
        async with AsyncSessionLocal() as db:
            if version:
                policy = await policy_service.get_policy_by_version(db, version)
            else:
                policy = await policy_service.get_active_policy(db)
            if not policy:
                raise PolicyNotFoundError(version)
            return policy_service.export_policy(policy)

    try:
        document = asyncio.run(_export())
    except ConsentError as e:
        _fail(e)

    file.write_text(json.dumps(document, indent=4 if pretty else None, ensure_ascii=False), encoding="utf-8")
    exported = document["cookiePolicy"]
    typer.secho(f"Exported cookie policy {exported['version']} to {file}", fg=typer.colors.GREEN)
    typer.echo(f"  Categories: {len(exported['categories'])}")
    typer.echo(f"  Third-party services: {len(exported['thirdPartyServices'])}")


@app.command(name="import")
def import_policy(
    file: Annotated[Path, typer.Argument(help="JSON file to import", exists=True, dir_okay=False, readable=True)],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Replace an existing policy with the same version")
    ] = False,
    activate: Annotated[bool, typer.Option("--activate", "-a", help="Activate the policy after import")] = False,
):
    """Import a cookie policy from a JSON file."""
    try:
        data = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        typer.secho(f"Error: invalid JSON in {file}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    async def _import():
        async with AsyncSessionLocal() as db:
            policy = await policy_service.import_policy(db, data, force=force, activate=activate)
            return policy.version, policy.is_active, len(policy.categories), len(policy.third_party_services)

    try:
        imported_version, is_active, category_count, service_count = asyncio.run(_import())
    except ConsentError as e:
        _fail(e)

    typer.secho(f"Imported cookie policy {imported_version}", fg=typer.colors.GREEN)
    typer.echo(f"  Categories: {category_count}")
    typer.echo(f"  Third-party services: {service_count}")
    typer.echo(f"  Active: {'yes' if is_active else 'no'}")


@app.command()
def activate(version: Annotated[str, typer.Argument(help="Policy version to activate")]):
    """Make a policy the active one; every other policy is deactivated."""

    async def _activate():
        async with AsyncSessionLocal() as db:
            await policy_service.activate_policy(db, version)

    try:
        asyncio.run(_activate())
    except ConsentError as e:
        _fail(e)

    typer.secho(f"Cookie policy {version} is now active", fg=typer.colors.GREEN)


@app.command(name="list")
def list_policies():
    """List stored policies."""

    async def _list():
        async with AsyncSessionLocal() as db:
            policies = await policy_service.list_policies(db)
            return [(policy.version, policy.last_updated, policy.is_active, len(policy.categories)) for policy in policies]

    rows = asyncio.run(_list())
    if not rows:
        typer.echo("No cookie policies stored")
        return

    for policy_version, last_updated, is_active, category_count in rows:
        marker = "*" if is_active else " "
        typer.echo(f"{marker} {policy_version:<20} {last_updated.isoformat()}  {category_count} categories")


@app.command()
def delete(
    version: Annotated[str, typer.Argument(help="Policy version to delete")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
):
    """Delete an inactive policy."""
    if not yes:
        typer.confirm(f"Delete cookie policy {version}?", abort=True)

    async def _delete():
        async with AsyncSessionLocal() as db:
            await policy_service.delete_policy(db, version)

    try:
        asyncio.run(_delete())
    except ConsentError as e:
        _fail(e)

    typer.secho(f"Deleted cookie policy {version}", fg=typer.colors.GREEN)


@app.command(name="purge-logs")
def purge_logs(
    days: Annotated[
        Optional[int], typer.Option("--days", "-d", min=1, help="Retention in days (default: from settings)")
    ] = None,
):
    """Delete consent log entries older than the retention period."""
    retention_days = days or settings.consent_log_retention_days

    async def _purge() -> int:
        async with AsyncSessionLocal() as db:
            return await audit_service.enforce_log_retention(db, retention_days)

    deleted_count = asyncio.run(_purge())
    typer.echo(f"Deleted {deleted_count} consent log entries older than {retention_days} days")


if __name__ == "__main__":
    app()
