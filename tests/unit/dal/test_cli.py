import json

from dal.cli import main


def test_migrate_reports_schema_versions(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("SQLITE_DB_PATH", str(tmp_path / "violations.db"))

    assert main(["migrate"]) == 0

    report = json.loads(capsys.readouterr().out)
    assert report["schema_versions"] == {"sqlite": 4}
    assert report["backends"]["postgres"]["state"] == "unavailable"
    assert report["backends"]["postgres"]["reason"] == "not_configured"


def test_status_shows_effective_routing(tmp_path, capsys):
    assert main(["--sqlite-path", str(tmp_path / "violations.db"), "status"]) == 0

    report = json.loads(capsys.readouterr().out)
    assert report["routing"]["atr_documents"] == {"owner": "postgres", "effective": "sqlite"}
    assert report["routing"]["violations"] == {"owner": "sqlite", "effective": "sqlite"}


def test_unusable_sqlite_exits_with_error(tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    assert main(["--sqlite-path", str(blocker / "violations.db"), "migrate"]) == 1
    assert capsys.readouterr().out == ""


def test_invalid_configuration_exits_with_error(monkeypatch):
    monkeypatch.setenv("PG_POOL_MAX_SIZE", "lots")
    assert main(["status"]) == 1


def test_no_command_prints_help(capsys):
    assert main([]) == 2
    assert "migrate" in capsys.readouterr().out
