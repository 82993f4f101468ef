"""Tests for the jenny CLI — config validate, flow plan, flow run."""

from __future__ import annotations

import json
import textwrap

import pytest
from typer.testing import CliRunner

from jenny.cli.app import app

runner = CliRunner()

MODULES_SRC = textwrap.dedent(
    """
    from jenny.orchestration.catalog import ModuleCatalog

    catalog = ModuleCatalog()

    @catalog.module(10)
    def core_channel_config(ctx):
        ctx.working_object.data["seen"] = True

    @catalog.module(20)
    def core_ai(ctx):
        raise RuntimeError("model offline")

    @catalog.module(9000)
    def core_output(ctx):
        pass

    not_a_catalog = object()
    """
)


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch):
    """Keep CLI invocations from reconfiguring process-wide logging."""
    monkeypatch.setattr("jenny.core.logging.configure_logging", lambda **kwargs: None)


@pytest.fixture
def modules_pkg(tmp_path, monkeypatch) -> str:
    (tmp_path / "cli_sample_modules.py").write_text(MODULES_SRC, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    return "cli_sample_modules"


@pytest.fixture
def cli_core(tmp_path):
    path = tmp_path / "cli_core.json"
    path.write_text(
        json.dumps(
            {
                "config": {
                    "core-channel-config": {"flow": ["discord"]},
                    "core-ai": {"flow": "discord"},
                    "core-output": {"flow": ["all"]},
                },
                "workingObject": {},
            }
        ),
        encoding="utf-8",
    )
    return path


class TestRootApp:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "jenny-core" in result.output

    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "config" in result.output
        assert "flow" in result.output


class TestConfigValidate:
    def test_valid(self, cli_core):
        result = runner.invoke(app, ["config", "validate", str(cli_core)])
        assert result.exit_code == 0
        assert "valid" in result.output
        assert "core-ai" in result.output

    def test_valid_json(self, cli_core):
        result = runner.invoke(app, ["config", "validate", str(cli_core), "--json"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["valid"] is True
        assert payload["modules"]["core-ai"] == ["discord"]

    def test_missing(self, tmp_path):
        result = runner.invoke(app, ["config", "validate", str(tmp_path / "nope.json")])
        assert result.exit_code == 1


class TestFlowPlan:
    def test_plan_json(self, cli_core, modules_pkg):
        result = runner.invoke(
            app, ["flow", "plan", "discord", "--core", str(cli_core), "--modules", modules_pkg, "--json"]
        )
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["normal"] == ["00010-core-channel-config", "00020-core-ai"]
        assert payload["jump"] == ["09000-core-output"]
        assert payload["total"] == 2

    def test_plan_table(self, cli_core, modules_pkg):
        result = runner.invoke(app, ["flow", "plan", "discord", "-c", str(cli_core), "-m", modules_pkg])
        assert result.exit_code == 0
        assert "core-channel-config" in result.output

    def test_bad_catalog_attribute(self, cli_core, modules_pkg):
        result = runner.invoke(
            app, ["flow", "plan", "discord", "-c", str(cli_core), "-m", f"{modules_pkg}:not_a_catalog"]
        )
        assert result.exit_code == 1

    def test_unimportable_module(self, cli_core):
        result = runner.invoke(app, ["flow", "plan", "discord", "-c", str(cli_core), "-m", "no_such_pkg_xyz"])
        assert result.exit_code == 1


class TestFlowRun:
    def test_run_json_reports_failure(self, cli_core, modules_pkg):
        result = runner.invoke(
            app, ["flow", "run", "discord", "--core", str(cli_core), "--modules", modules_pkg, "--json"]
        )
        assert result.exit_code == 2
        payload = json.loads(result.stdout)
        assert payload["status"] == "FAIL"
        assert payload["ok"] == 1
        assert payload["fail"] == 1
        assert [row["name"] for row in payload["history"]] == ["core-channel-config", "core-ai", "core-output"]
        assert payload["history"][1]["error"] == "model offline"

    def test_run_missing_core(self, tmp_path, modules_pkg):
        result = runner.invoke(
            app, ["flow", "run", "discord", "-c", str(tmp_path / "missing.json"), "-m", modules_pkg]
        )
        assert result.exit_code == 1

    def test_run_without_state_exits_cleanly(self, cli_core, modules_pkg, monkeypatch):
        """A run that leaves no state is reported as an error, not a crash."""

        async def no_run(self, name, ctx=None):
            return ctx

        monkeypatch.setattr("jenny.orchestration.engine.FlowEngine.run_flow", no_run)
        result = runner.invoke(app, ["flow", "run", "discord", "-c", str(cli_core), "-m", modules_pkg])
        assert result.exit_code == 1
        assert "produced no run state" in result.output
        assert not isinstance(result.exception, AssertionError)
