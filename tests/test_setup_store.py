"""Tests for the ledger bootstrap helper."""

from __future__ import annotations

import pytest

from record_ledger import core_logic, setup_store


def test_write_config_defaults(tmp_path):
    config_path = setup_store.write_config(tmp_path / "config.ini")

    assert config_path.read_text(encoding="utf-8") == "[System]\nDataFile = records.txt\n"


def test_write_config_includes_log_file(tmp_path):
    config_path = setup_store.write_config(tmp_path / "config.ini", data_file="data.txt", log_file="audit.log")

    assert "LogFile = audit.log" in config_path.read_text(encoding="utf-8")


def test_write_config_refuses_to_overwrite(tmp_path):
    target = tmp_path / "config.ini"
    target.write_text("keep me", encoding="utf-8")

    with pytest.raises(FileExistsError):
        setup_store.write_config(target)
    assert target.read_text(encoding="utf-8") == "keep me"

    setup_store.write_config(target, overwrite=True)
    assert target.read_text(encoding="utf-8").startswith("[System]")


def test_initialize_ledger_creates_files(tmp_path):
    settings = setup_store.initialize_ledger(tmp_path / "cfg" / "config.ini")

    assert settings.data_file == (tmp_path / "cfg" / "records.txt").resolve()
    assert settings.data_file.read_text(encoding="utf-8") == ""
    log_lines = settings.log_file.read_text(encoding="utf-8").splitlines()
    assert any("Initialization Success Created record file:" in line for line in log_lines)
    assert any("Initialization Success Created log file:" in line for line in log_lines)


def test_initialized_ledger_is_usable_through_config(tmp_path):
    config_path = tmp_path / "config.ini"
    setup_store.initialize_ledger(config_path, data_file="people.txt")

    context = core_logic.load_runtime_context(config_path)

    assert core_logic.add_record(context, "Alice", "4").ok
    assert (tmp_path / "people.txt").read_text(encoding="utf-8") == "Alice,4\n"


def test_main_reports_success_and_existing_config(tmp_path, capsys):
    config_path = tmp_path / "config.ini"

    assert setup_store.main(["--config", str(config_path)]) == 0
    assert "[SUCCESS]" in capsys.readouterr().out

    assert setup_store.main(["--config", str(config_path)]) == 1
    assert "[ERROR]" in capsys.readouterr().out

    assert setup_store.main(["--config", str(config_path), "--force"]) == 0
