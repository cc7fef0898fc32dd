"""Shared pytest fixtures and utilities for record ledger tests."""

from __future__ import annotations

import argparse
import sys
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator

import pytest

# Ensure source packages are importable without installation.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from record_ledger import audit_log, cli, core_logic, data_manager  # noqa: E402

_CONFIG_TEMPLATE = (
    "[System]\n"
    "DataFile = {data_file}\n"
)


@dataclass(frozen=True)
class ConfigBundle:
    """Container bundling together config metadata for tests."""

    directory: Path
    config_path: Path
    data_file: Path
    log_file: Path


@pytest.fixture(scope="session", autouse=True)
def _restore_sys_path() -> Iterator[None]:
    """Ensure sys.path modifications are undone after the test session."""

    original = sys.path.copy()
    try:
        yield
    finally:
        sys.path[:] = original


@pytest.fixture
def store_factory(tmp_path: Path) -> Callable[..., Path]:
    """Factory that writes a store file holding the given lines."""

    def _create_store(*lines: str, filename: str = "records.txt") -> Path:
        base_dir = tmp_path / f"store_{uuid.uuid4().hex}"
        base_dir.mkdir(parents=True, exist_ok=True)
        data_file = base_dir / filename
        data_file.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return data_file

    return _create_store


@pytest.fixture
def config_factory(tmp_path: Path, store_factory: Callable[..., Path]) -> Callable[..., ConfigBundle]:
    """Provide a callable that creates config/store bundles on demand."""

    def _create_config(*lines: str, make_relative: bool = False) -> ConfigBundle:
        data_file = store_factory(*lines)
        entry = data_file.name if make_relative else str(data_file)
        config_path = data_file.parent / "config.ini"
        config_path.write_text(_CONFIG_TEMPLATE.format(data_file=entry), encoding="utf-8")
        return ConfigBundle(
            directory=data_file.parent,
            config_path=config_path,
            data_file=data_file,
            log_file=data_manager.default_log_file(data_file),
        )

    return _create_config


@pytest.fixture
def config_file(config_factory: Callable[..., ConfigBundle]) -> Path:
    """Convenience fixture returning only the config path."""

    return config_factory().config_path


@pytest.fixture
def ledger_factory(store_factory: Callable[..., Path]) -> Callable[..., core_logic.RuntimeContext]:
    """Open a ledger whose store starts with the given lines."""

    def _open(*lines: str) -> core_logic.RuntimeContext:
        data_file = store_factory(*lines)
        return core_logic.open_ledger(data_manager.settings_for_store(data_file))

    return _open


@pytest.fixture
def runtime_context(ledger_factory: Callable[..., core_logic.RuntimeContext]) -> core_logic.RuntimeContext:
    """An empty ledger opened through the public API."""

    return ledger_factory()


@pytest.fixture
def store_lines() -> Callable[[core_logic.RuntimeContext], list[str]]:
    """Return a reader for the non-empty lines persisted in a ledger store."""

    def _read(context: core_logic.RuntimeContext) -> list[str]:
        text = context.settings.data_file.read_text(encoding="utf-8")
        return [line for line in text.splitlines() if line]

    return _read


@pytest.fixture
def audit_lines() -> Callable[[core_logic.RuntimeContext], list[str]]:
    """Return a reader for every line written to a ledger audit log."""

    def _read(context: core_logic.RuntimeContext) -> list[str]:
        return context.settings.log_file.read_text(encoding="utf-8").splitlines()

    return _read


# ---------------------------------------------------------------------------
# CLI layer fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_parser() -> argparse.ArgumentParser:
    """Return a fresh CLI parser instance for tests."""

    return argparse.ArgumentParser(prog="ledger-cli", description="Ledger CLI")


@pytest.fixture
def subparsers_action(
    cli_parser: argparse.ArgumentParser,
) -> argparse._SubParsersAction[argparse.ArgumentParser]:
    """Return the subparser action used to register commands."""

    return cli_parser.add_subparsers(dest="command")


@pytest.fixture
def command_spec_iterable() -> list[cli.CommandSpec]:
    """Provide a list of command specs for indexing tests."""

    def _make_spec(name: str) -> cli.CommandSpec:
        return cli.CommandSpec(
            name,
            f"{name} help",
            lambda subparsers: subparsers.add_parser(name),
            lambda *_: 0,
        )

    return [_make_spec("alpha"), _make_spec("beta"), _make_spec("gamma")]


# ---------------------------------------------------------------------------
# Audit log fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def set_fixed_datetime(monkeypatch: pytest.MonkeyPatch) -> Callable[[datetime], datetime]:
    """Patch ``audit_log.datetime`` so entries carry a predetermined moment."""

    def _apply(moment: datetime) -> datetime:
        class _FixedDateTime:
            @staticmethod
            def now(tz=None):
                assert tz is None
                return moment

        monkeypatch.setattr(audit_log, "datetime", _FixedDateTime)
        return moment

    return _apply
