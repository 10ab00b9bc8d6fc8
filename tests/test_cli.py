from __future__ import annotations

import json

import pytest

from npm_mirror.cli import EXIT_ERROR, EXIT_FINDINGS, EXIT_OK, main

from conftest import TARGET, lockfile_bytes


@pytest.fixture(autouse=True)
def _offline(monkeypatch, registry):
    for var in ("NPM_MIRROR_CONFIG", "NPM_MIRROR_REGISTRY", "NPM_MIRROR_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("npm_mirror.registry.client._http_get", registry)


@pytest.fixture
def lockfile(tmp_path):
    path = tmp_path / "package-lock.json"
    path.write_bytes(
        lockfile_bytes(
            {
                "lockfileVersion": 1,
                "dependencies": {
                    "a": {"version": "1.0.0", "resolved": "https://old/a-1.0.0.tgz"},
                    "ghost": {"version": "1.0.0", "resolved": "https://old/ghost-1.0.0.tgz"},
                },
            }
        )
    )
    return path


def test_check_fails_on_mismatch(lockfile, capsys):
    code = main(["check", "--lockfile", str(lockfile), "--registry", TARGET])

    assert code == EXIT_FINDINGS
    err = capsys.readouterr().err
    assert "a: https://old/a-1.0.0.tgz" in err
    assert "ghost: https://old/ghost-1.0.0.tgz" in err


def test_update_rewrites_file_and_prints_report(lockfile, registry, capsys):
    tarball = registry.publish("a", "1.0.0", integrity="sha512-a")

    code = main(["update", "--lockfile", str(lockfile), "--registry", TARGET, "--json"])

    assert code == EXIT_OK
    report = json.loads(capsys.readouterr().out)
    assert report["mode"] == "update"
    assert report["totals"] == {"rewritten": 1, "findings": 1}
    assert report["findings"][0]["package"] == "ghost"
    written = json.loads(lockfile.read_text(encoding="utf-8"))
    assert written["dependencies"]["a"]["resolved"] == tarball


def test_update_strict_fails_when_entries_are_skipped(lockfile, registry):
    registry.publish("a", "1.0.0", integrity="sha512-a")

    code = main(["update", "--lockfile", str(lockfile), "--registry", TARGET, "--strict"])

    assert code == EXIT_FINDINGS


def test_check_writes_markdown_summary(lockfile, registry, tmp_path):
    registry.publish("a", "1.0.0", integrity="sha512-a")
    registry.publish("ghost", "1.0.0", integrity="sha512-ghost")
    assert main(["update", "--lockfile", str(lockfile), "--registry", TARGET]) == EXIT_OK

    summary = tmp_path / "summary.md"
    code = main(
        ["check", "--lockfile", str(lockfile), "--registry", TARGET, "--summary", str(summary)]
    )

    assert code == EXIT_OK
    text = summary.read_text(encoding="utf-8")
    assert "# npm-mirror check summary" in text
    assert "Checked: 2 | Mismatches: 0" in text


def test_fatal_errors_exit_with_error(tmp_path, capsys):
    path = tmp_path / "package-lock.json"
    path.write_bytes(b"{not json")

    assert main(["update", "--lockfile", str(path), "--registry", TARGET]) == EXIT_ERROR
    assert "ERROR:" in capsys.readouterr().err
    assert path.read_bytes() == b"{not json"


def test_missing_lockfile_exits_with_error(tmp_path, capsys):
    code = main(["check", "--lockfile", str(tmp_path / "absent.json"), "--registry", TARGET])

    assert code == EXIT_ERROR
    assert "ERROR:" in capsys.readouterr().err


def test_invalid_registry_is_a_config_error(lockfile, capsys):
    assert main(["check", "--lockfile", str(lockfile), "--registry", "not-a-url"]) == EXIT_ERROR
    assert "Registry must be an http(s) URL" in capsys.readouterr().err
