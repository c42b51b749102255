"""
Tests for the consent-admin command line

Each command runs its own event loop, so these tests use a file database
and plain (sync) test functions.
"""

import asyncio
import json

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from typer.testing import CliRunner

import cookie_consent.cli as cli_module
from cookie_consent.cli import app as cli_app
from cookie_consent.database import Base
from cookie_consent.services import policy_service
from utils.mock_utils import policy_document

runner = CliRunner()


@pytest.fixture
def cli_sessions(tmp_path, monkeypatch):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(cli_module, "AsyncSessionLocal", session_maker)
    return session_maker


@pytest.fixture
def document_file(tmp_path):
    path = tmp_path / "policy.json"
    path.write_text(json.dumps(policy_document("2.0.0")), encoding="utf-8")
    return path


def active_version(session_maker) -> str | None:
    async def _active():
        async with session_maker() as db:
            policy = await policy_service.get_active_policy(db)
            return policy.version if policy else None

    return asyncio.run(_active())


class TestImport:
    def test_import_and_activate(self, cli_sessions, document_file):
        result = runner.invoke(cli_app, ["import", str(document_file), "--activate"])

        assert result.exit_code == 0, result.output
        assert "Imported cookie policy 2.0.0" in result.output
        assert "Active: yes" in result.output
        assert active_version(cli_sessions) == "2.0.0"

    def test_import_existing_without_force_fails(self, cli_sessions, document_file):
        runner.invoke(cli_app, ["import", str(document_file)])

        result = runner.invoke(cli_app, ["import", str(document_file)])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_import_with_force(self, cli_sessions, document_file):
        runner.invoke(cli_app, ["import", str(document_file)])

        result = runner.invoke(cli_app, ["import", str(document_file), "--force"])

        assert result.exit_code == 0, result.output

    def test_invalid_json(self, cli_sessions, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{broken", encoding="utf-8")

        result = runner.invoke(cli_app, ["import", str(path)])

        assert result.exit_code == 1


class TestExport:
    def test_export_round_trip(self, cli_sessions, document_file, tmp_path):
        runner.invoke(cli_app, ["import", str(document_file), "--activate"])
        out = tmp_path / "export.json"

        result = runner.invoke(cli_app, ["export", str(out), "--pretty"])

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text(encoding="utf-8")) == policy_document("2.0.0")

    def test_export_without_active_policy(self, cli_sessions, tmp_path):
        result = runner.invoke(cli_app, ["export", str(tmp_path / "export.json")])

        assert result.exit_code == 1
        assert "not found" in result.output


class TestActivateListDelete:
    def test_activate_switches_active_policy(self, cli_sessions, document_file, tmp_path):
        runner.invoke(cli_app, ["import", str(document_file), "--activate"])
        second = tmp_path / "second.json"
        second.write_text(json.dumps(policy_document("2.1.0")), encoding="utf-8")
        runner.invoke(cli_app, ["import", str(second)])

        result = runner.invoke(cli_app, ["activate", "2.1.0"])

        assert result.exit_code == 0, result.output
        assert active_version(cli_sessions) == "2.1.0"

        listing = runner.invoke(cli_app, ["list"])
        assert "* 2.1.0" in listing.output
        assert "  2.0.0" in listing.output

    def test_delete_active_policy_refused(self, cli_sessions, document_file):
        runner.invoke(cli_app, ["import", str(document_file), "--activate"])

        result = runner.invoke(cli_app, ["delete", "2.0.0", "--yes"])

        assert result.exit_code == 1
        assert active_version(cli_sessions) == "2.0.0"

    def test_delete_inactive_policy(self, cli_sessions, document_file):
        runner.invoke(cli_app, ["import", str(document_file)])

        result = runner.invoke(cli_app, ["delete", "2.0.0", "--yes"])

        assert result.exit_code == 0, result.output
        assert "No cookie policies stored" in runner.invoke(cli_app, ["list"]).output

    def test_purge_logs(self, cli_sessions):
        result = runner.invoke(cli_app, ["purge-logs", "--days", "30"])

        assert result.exit_code == 0, result.output
        assert "Deleted 0 consent log entries" in result.output
