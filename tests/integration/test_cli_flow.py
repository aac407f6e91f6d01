import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from guestlist.domain.errors import ConfigurationError
from guestlist.infrastructure.config import settings
from guestlist.main import app, create_dependencies

# These fixtures are defined in tests/conftest.py:
# runner: CliRunner

@pytest.fixture(autouse=True)
def isolated_cli(mocker, monkeypatch, tmp_path: Path):
    """Keeps the CLI away from real config files, env keys and logging handlers."""
    mocker.patch("guestlist.main.load_configuration")
    mocker.patch("guestlist.main.setup_logging")
    for name in ("GATHER_API_KEY", "GATHER_BASE_URL", "FC_CONTACT_EMAIL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

@pytest.fixture
def guests_file(tmp_path: Path):
    def _write(guests):
        path = tmp_path / "guests.json"
        path.write_text(json.dumps(guests), encoding="utf-8")
        return path
    return _write

def test_demo_run_succeeds(runner: CliRunner, tmp_path: Path):
    """Full POC against the in-memory API, results file disabled."""
    result = runner.invoke(app, ["run", "--demo", "--no-save"])

    assert result.exit_code == 0, f"CLI command failed: {result.output}"
    assert "Remote office created" in result.output
    assert "Implementation verification passed" in result.output
    assert "POC EXECUTION SUCCESSFUL" in result.output
    assert list(tmp_path.glob("poc_results_*.json")) == []

def test_demo_run_saves_results(runner: CliRunner, tmp_path: Path):
    results_dir = tmp_path / "results"

    result = runner.invoke(app, ["run", "--demo", "--results-dir", str(results_dir)])

    assert result.exit_code == 0, f"CLI command failed: {result.output}"
    saved = list(results_dir.glob("poc_results_*.json"))
    assert len(saved) == 1
    data = json.loads(saved[0].read_text(encoding="utf-8"))
    assert data["success"] is True
    assert data["report"]["pocExecution"]["apiVersion"] == "v2"

def test_demo_run_with_rate_tier(runner: CliRunner):
    result = runner.invoke(app, ["run", "--demo", "--no-save", "--rate-tier", "burst"])
    assert result.exit_code == 0, f"CLI command failed: {result.output}"

def test_unknown_rate_tier_is_rejected(runner: CliRunner, mocker):
    client = mocker.patch("guestlist.main.GatherApiClient")

    result = runner.invoke(app, ["run", "--demo", "--no-save", "--rate-tier", "gold"])

    assert result.exit_code == 2
    assert "GATHER_API_KEY" not in result.output
    client.assert_not_called()

def test_run_without_api_key_fails(runner: CliRunner):
    result = runner.invoke(app, ["run", "--no-save"])

    assert result.exit_code == 1
    assert "GATHER_API_KEY" in result.output
    assert "use --demo" in result.output

def test_invalid_base_url_gets_a_settings_hint(runner: CliRunner, monkeypatch):
    monkeypatch.setenv("GATHER_API_KEY", "key-123")
    monkeypatch.setenv("GATHER_BASE_URL", "ftp://nowhere")

    result = runner.invoke(app, ["run", "--no-save"])

    assert result.exit_code == 1
    assert "Check the settings" in result.output
    assert "use --demo" not in result.output

def test_run_with_invalid_contact_email_fails(runner: CliRunner, tmp_path: Path):
    settings.set_config_for_testing({"fc.contact_email": "not-an-email"})

    result = runner.invoke(app, ["run", "--demo"])

    assert result.exit_code == 1
    assert "POC EXECUTION FAILED" in result.output
    saved = list(tmp_path.glob("poc_results_*.json"))
    assert len(saved) == 1
    assert json.loads(saved[0].read_text(encoding="utf-8"))["errors"][0]["type"] == "ConfigurationError"

def test_demo_invite_succeeds(runner: CliRunner, guests_file):
    path = guests_file([
        {"email": "one@example.com", "name": "One"},
        {"email": "two@example.com"},
        {"email": "three@example.com", "role": "member"},
    ])

    result = runner.invoke(app, ["invite", "space_demo", str(path), "--demo", "--batch-size", "2", "--batch-delay", "0"])

    assert result.exit_code == 0, f"CLI command failed: {result.output}"
    assert "All 3 guests invited" in result.output

def test_demo_invite_reports_failures(runner: CliRunner, guests_file):
    path = guests_file([{"email": "one@example.com"}, {"name": "No Email"}])

    result = runner.invoke(app, ["invite", "space_demo", str(path), "--demo", "--batch-delay", "0"])

    assert result.exit_code == 1
    assert "1 of 2 invitations failed" in result.output

def test_invite_rejects_malformed_guest_file(runner: CliRunner, guests_file):
    path = guests_file({"email": "not-a-list@example.com"})

    result = runner.invoke(app, ["invite", "space_demo", str(path), "--demo"])

    assert result.exit_code == 2

def test_invite_rejects_zero_batch_size(runner: CliRunner, guests_file):
    path = guests_file([{"email": "one@example.com"}])

    result = runner.invoke(app, ["invite", "space_demo", str(path), "--demo", "--batch-size", "0"])

    assert result.exit_code == 2

def test_invite_rejects_empty_space_id(runner: CliRunner, guests_file):
    path = guests_file([{"email": "one@example.com"}])

    result = runner.invoke(app, ["invite", "", str(path), "--demo", "--batch-delay", "0"])

    assert result.exit_code == 2
    assert "SPACE_ID" in result.output

def test_invite_reports_malformed_guest_entries(runner: CliRunner, guests_file):
    path = guests_file([{"email": "ok@example.com"}, {"email": 123}])

    result = runner.invoke(app, ["invite", "space_demo", str(path), "--demo", "--batch-delay", "0"])

    assert result.exit_code == 1
    assert "Bulk Invitation Results" in result.output
    assert "1 of 2 invitations failed" in result.output

def test_bad_settings_fail_before_the_client_is_opened(mocker):
    client = mocker.patch("guestlist.main.GatherApiClient")

    with pytest.raises(ConfigurationError, match="Unknown rate tier"):
        create_dependencies(demo=True, rate_tier="gold")

    client.assert_not_called()
