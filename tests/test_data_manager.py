"""Unit tests documenting the expected behavior of the data access layer."""

from __future__ import annotations

import configparser
import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from record_ledger import data_manager
from record_ledger.data_manager import Record
from record_ledger.errors import MalformedRecordError, RecordNotFoundError


def test_find_config_file_respects_explicit_path(config_file: Path):
    """Supplying an explicit path should be treated as the winning answer."""

    result = data_manager.find_config_file(config_file)
    assert result == config_file


def test_find_config_file_discovers_in_parent(tmp_path, monkeypatch):
    """Auto-discovery should walk up from the working directory."""

    config_file = tmp_path / "config.ini"
    config_file.write_text("[System]\nDataFile=records.txt")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    result = data_manager.find_config_file()
    assert result == config_file


def test_find_config_file_raises_when_missing(tmp_path, monkeypatch):
    """Absent configuration should surface a clear FileNotFoundError."""

    monkeypatch.chdir(tmp_path)
    with patch.object(Path, "exists", return_value=False):
        with pytest.raises(FileNotFoundError):
            data_manager.find_config_file()


def test_read_config_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        data_manager.read_config(tmp_path / "not_there.ini")


def test_parse_settings_resolves_relative_paths(config_factory):
    """Relative DataFile entries should be anchored to the config location."""

    bundle = config_factory(make_relative=True)
    parser = data_manager.read_config(bundle.config_path)
    settings = data_manager.parse_settings(parser, base_path=bundle.config_path.parent)

    assert settings.data_file == bundle.data_file.resolve()
    assert settings.log_file == Path(str(bundle.data_file.resolve()) + "_log")


def test_parse_settings_honours_explicit_log_file(tmp_path):
    parser = configparser.ConfigParser()
    parser.read_string("[System]\nDataFile = data.txt\nLogFile = logs/audit.log\n")

    settings = data_manager.parse_settings(parser, base_path=tmp_path)

    assert settings.data_file == (tmp_path / "data.txt").resolve()
    assert settings.log_file == (tmp_path / "logs" / "audit.log").resolve()


def test_parse_settings_requires_data_file(tmp_path):
    """Missing keys should result in a descriptive KeyError."""

    parser = configparser.ConfigParser()
    parser.read_string("[System]\nLogFile=x")
    with pytest.raises(KeyError):
        data_manager.parse_settings(parser, base_path=tmp_path)


def test_settings_for_store_derives_log_name(tmp_path):
    settings = data_manager.settings_for_store(tmp_path / "ledger")
    assert settings.log_file.name == "ledger_log"


def test_ensure_file_creates_once(tmp_path):
    target = tmp_path / "nested" / "records.txt"

    assert data_manager.ensure_file(target) is True
    assert target.read_text() == ""
    assert data_manager.ensure_file(target) is False


def test_serialize_and_deserialize_record():
    record = Record("Alice", 10)

    assert data_manager.serialize_record(record) == "Alice,10"
    assert data_manager.deserialize_record("Alice,10\n") == record
    assert record.line == "Alice,10"


@pytest.mark.parametrize(
    "line",
    ["Alice", "Alice,10,3", "Alice,-1", "Alice,ten", "1Alice,3", ",3", "Alice,"],
)
def test_deserialize_record_rejects_malformed_lines(line):
    with pytest.raises(MalformedRecordError):
        data_manager.deserialize_record(line, line_number=4)


def test_load_records_preserves_order_and_skips_blank_lines(store_factory):
    data_file = store_factory("Zed,1", "", "Amy,2")

    records = data_manager.load_records(data_file)

    assert records == [Record("Zed", 1), Record("Amy", 2)]


def test_load_records_reports_malformed_line_number(store_factory):
    data_file = store_factory("Amy,2", "broken line")

    with pytest.raises(MalformedRecordError) as excinfo:
        data_manager.load_records(data_file)
    assert excinfo.value.line_number == 2


def test_is_empty(store_factory):
    assert data_manager.is_empty(store_factory()) is True
    assert data_manager.is_empty(store_factory("A,1")) is False


def test_append_record_adds_line_at_end(store_factory):
    data_file = store_factory("Amy,2")

    data_manager.append_record(data_file, Record("Bob", 5))

    assert data_file.read_text() == "Amy,2\nBob,5\n"


def test_append_record_repairs_missing_trailing_newline(store_factory):
    data_file = store_factory()
    data_file.write_text("Amy,2")

    data_manager.append_record(data_file, Record("Bob", 5))

    assert data_file.read_text() == "Amy,2\nBob,5\n"


def test_replace_line_targets_exact_name_only(store_factory):
    """Renaming Bob must not touch Bobby even though it shares the prefix."""

    data_file = store_factory("Bobby,1", "Bob,2", "Carol,3")

    previous = data_manager.replace_line(data_file, "Bob", Record("Robert", 2))

    assert previous == Record("Bob", 2)
    assert data_file.read_text().splitlines() == ["Bobby,1", "Robert,2", "Carol,3"]


def test_replace_line_missing_raises(store_factory):
    data_file = store_factory("Amy,2")

    with pytest.raises(RecordNotFoundError):
        data_manager.replace_line(data_file, "Bob", Record("Bob", 1))
    assert data_file.read_text() == "Amy,2\n"


def test_delete_line_removes_only_target(store_factory):
    data_file = store_factory("Bob,2", "Bobby,1")

    removed = data_manager.delete_line(data_file, "Bob")

    assert removed == Record("Bob", 2)
    assert data_file.read_text() == "Bobby,1\n"


def test_delete_line_missing_raises(store_factory):
    with pytest.raises(RecordNotFoundError):
        data_manager.delete_line(store_factory("Amy,2"), "Bob")


def test_write_records_leaves_store_intact_on_failure(store_factory, monkeypatch):
    """A failed rewrite must not leave a partial store or a stray temp file."""

    data_file = store_factory("Amy,2", "Bob,3")

    def _boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(data_manager.os, "replace", _boom)
    with pytest.raises(OSError):
        data_manager.write_records(data_file, [Record("Amy", 9)])

    assert data_file.read_text() == "Amy,2\nBob,3\n"
    assert sorted(p.name for p in data_file.parent.iterdir()) == ["records.txt"]


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
@pytest.mark.parametrize("mode", [0o644, 0o640])
def test_rewrites_keep_store_permissions(store_factory, mode):
    """Rewriting through a temporary file must not narrow the store's mode."""

    data_file = store_factory("Amy,2", "Carol,5")
    os.chmod(data_file, mode)

    data_manager.replace_line(data_file, "Carol", Record("Carol", 2))
    assert stat.S_IMODE(os.stat(data_file).st_mode) == mode

    data_manager.delete_line(data_file, "Amy")
    assert stat.S_IMODE(os.stat(data_file).st_mode) == mode
    assert data_file.read_text() == "Carol,2\n"
