from __future__ import annotations

import json
from pathlib import Path

import pytest

from hostasis.cli import build_parser, main
from hostasis.security.address import address_hex
from hostasis.security.project_keys import project_key
from tests.conftest import ANVIL_ADDR_0, ANVIL_KEY_0
from tests.unit import _writers


def test_cli_help_includes_subcommands(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main([])
    assert rc == 2
    out = capsys.readouterr().out
    for cmd in ("address", "project", "batch", "feed"):
        assert cmd in out


def test_cli_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip().startswith("hostasis v")


def test_cli_unknown_command_errors() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["nope"])
    with pytest.raises(SystemExit):
        main(["nope"])


def test_feed_update_requires_reference() -> None:
    with pytest.raises(SystemExit):
        main(["feed", "update", "--key", ANVIL_KEY_0])


def test_address_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["address", "--key", ANVIL_KEY_0]) == 0
    assert capsys.readouterr().out.strip() == ANVIL_ADDR_0


def test_address_command_from_env(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("HOSTASIS_PRIVATE_KEY", ANVIL_KEY_0)
    monkeypatch.setenv("HOSTASIS_PROJECT", "My Blog")
    assert main(["address", "--json"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["project"] == "my-blog"
    assert out["address"] == project_key(ANVIL_KEY_0, "my-blog").address


def test_address_command_without_key(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["address"]) == 1
    assert "HOSTASIS_PRIVATE_KEY" in capsys.readouterr().err


def test_address_command_bad_key(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["address", "--key", "0x1234"]) == 1
    assert "64 hex characters" in capsys.readouterr().err


def test_project_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["project", "My Blog!!"]) == 0
    assert capsys.readouterr().out.strip() == "my-blog"

    assert main(["project", "My Blog", "--key", ANVIL_KEY_0, "--json"]) == 0
    out = json.loads(capsys.readouterr().out)
    pk = project_key(ANVIL_KEY_0, "My Blog")
    assert out == {"project": "my-blog", "address": pk.address}

    assert main(["project", "My Blog", "--key", ANVIL_KEY_0, "--show-key"]) == 0
    assert pk.private_key in capsys.readouterr().out


def test_project_command_empty_slug(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["project", "   "]) == 1
    assert "error:" in capsys.readouterr().err


def test_batch_depth_rejects_malformed_id(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["batch", "depth", "--batch-id", "xyz"]) == 1
    assert "Invalid batch ID format" in capsys.readouterr().err


def test_batch_without_action(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["batch"]) == 2


def test_feed_update_dry_run_with_explicit_values(capsys: pytest.CaptureFixture[str], batch_id: str, reference: str) -> None:
    rc = main(
        [
            "feed", "update",
            "--reference", reference,
            "--key", ANVIL_KEY_0,
            "--batch-id", batch_id,
            "--index", "3",
            "--depth", "20",
            "--dry-run",
            "--json",
        ]
    )  # fmt: skip
    assert rc == 0
    captured = capsys.readouterr()
    out = json.loads(captured.out)
    assert out["dry_run"] is True
    assert out["owner"] == address_hex(ANVIL_KEY_0)
    assert out["request"]["index"] == 3
    assert out["request"]["depth"] == 20
    assert out["request"]["signer_key"] is None
    assert ANVIL_KEY_0[2:] not in captured.out + captured.err


def test_feed_update_rejects_bad_batch_before_network(capsys: pytest.CaptureFixture[str], reference: str) -> None:
    rc = main(["feed", "update", "--reference", reference, "--key", ANVIL_KEY_0, "--batch-id", "xyz", "--dry-run"])
    assert rc == 1
    assert "Invalid batch ID format" in capsys.readouterr().err


def test_feed_update_requires_writer_unless_dry_run(capsys: pytest.CaptureFixture[str], batch_id: str, reference: str) -> None:
    rc = main(["feed", "update", "--reference", reference, "--key", ANVIL_KEY_0, "--batch-id", batch_id, "--index", "0", "--depth", "20"])
    assert rc == 1
    assert "--writer" in capsys.readouterr().err


def test_feed_update_writes_through_configured_writer(
    capsys: pytest.CaptureFixture[str], tmp_path: Path, batch_id: str, reference: str
) -> None:
    cfg = tmp_path / "hostasis.yaml"
    cfg.write_text(f"batch_id: {batch_id}\nfeed_writer: tests.unit._writers:RECORDER\n")
    _writers.RECORDER.requests.clear()

    rc = main(
        [
            "feed", "update",
            "--config", str(cfg),
            "--reference", reference,
            "--key", ANVIL_KEY_0,
            "--project", "My Blog",
            "--index", "5",
            "--depth", "22",
        ]
    )  # fmt: skip
    assert rc == 0

    req = _writers.RECORDER.last
    assert req is not None
    pk = project_key(ANVIL_KEY_0, "My Blog")
    assert req.signer_key == pk.private_key
    assert req.reserve_key == ANVIL_KEY_0
    assert (req.index, req.depth) == (5, 22)

    out = capsys.readouterr().out
    assert "Feed update complete!" in out
    assert "Index:      5" in out
    assert "Project:    my-blog" in out


def test_feed_update_dry_run_bypasses_configured_writer(
    capsys: pytest.CaptureFixture[str], tmp_path: Path, batch_id: str, reference: str
) -> None:
    cfg = tmp_path / "hostasis.yaml"
    cfg.write_text(f"batch_id: {batch_id}\nfeed_writer: tests.unit._writers:RECORDER\n")
    _writers.RECORDER.requests.clear()

    rc = main(
        [
            "feed", "update",
            "--config", str(cfg),
            "--reference", reference,
            "--key", ANVIL_KEY_0,
            "--index", "7",
            "--depth", "20",
            "--dry-run",
        ]
    )  # fmt: skip
    assert rc == 0
    assert _writers.RECORDER.requests == []

    out = capsys.readouterr().out
    assert "Feed update planned (dry run)" in out
    assert "Index:      7" in out


def test_feed_update_quiet(capsys: pytest.CaptureFixture[str], batch_id: str, reference: str) -> None:
    _writers.RECORDER.requests.clear()
    rc = main(
        [
            "feed", "update",
            "--reference", reference,
            "--key", ANVIL_KEY_0,
            "--batch-id", batch_id,
            "--index", "1",
            "--depth", "20",
            "--writer", "tests.unit._writers:RECORDER",
            "--quiet",
        ]
    )  # fmt: skip
    assert rc == 0
    assert capsys.readouterr().out.strip() == "success"
    assert len(_writers.RECORDER.requests) == 1


def test_feed_update_writer_failure(capsys: pytest.CaptureFixture[str], batch_id: str, reference: str) -> None:
    rc = main(
        [
            "feed", "update",
            "--reference", reference,
            "--key", ANVIL_KEY_0,
            "--batch-id", batch_id,
            "--index", "1",
            "--depth", "20",
            "--writer", "tests.unit._writers:failing_writer",
        ]
    )  # fmt: skip
    assert rc == 1
    assert "gateway rejected chunk" in capsys.readouterr().err


def test_missing_config_file(capsys: pytest.CaptureFixture[str], tmp_path: Path) -> None:
    assert main(["address", "--config", str(tmp_path / "nope.yaml"), "--key", ANVIL_KEY_0]) == 1
    assert "Config file not found" in capsys.readouterr().err
