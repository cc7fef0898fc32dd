"""Utility for initializing a record ledger.

The module doubles as a script (``ledger-setup``) and as a library used by
tests or other tooling. It writes a ``config.ini`` pointing at the store and
creates the empty store and audit log files next to it.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import data_manager
from .core_logic import open_ledger

DEFAULT_STORE_NAME = "records.txt"

_CONFIG_TEMPLATE = (
    "[System]\n"
    "DataFile = {data_file}\n"
    "{log_line}"
)


def write_config(
    config_path: Path,
    *,
    data_file: str = DEFAULT_STORE_NAME,
    log_file: Optional[str] = None,
    overwrite: bool = False,
) -> Path:
    """Write a ``config.ini`` describing where the ledger files live.

    Paths are written as given; relative ones are later resolved against the
    config file's directory.

    Raises:
        FileExistsError: If ``config_path`` exists and ``overwrite`` is false.
    """

    config_path = Path(config_path).expanduser().resolve()
    if config_path.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite existing configuration: {config_path}")

    config_path.parent.mkdir(parents=True, exist_ok=True)
    log_line = f"LogFile = {log_file}\n" if log_file else ""
    config_path.write_text(
        _CONFIG_TEMPLATE.format(data_file=data_file, log_line=log_line),
        encoding="utf-8",
    )
    return config_path


def initialize_ledger(
    config_path: Path,
    *,
    data_file: str = DEFAULT_STORE_NAME,
    log_file: Optional[str] = None,
    overwrite: bool = False,
) -> data_manager.ConfigSettings:
    """Write the configuration and create the store and audit log it names."""

    written = write_config(config_path, data_file=data_file, log_file=log_file, overwrite=overwrite)
    parser = data_manager.read_config(written)
    settings = data_manager.parse_settings(parser, base_path=written.parent)
    open_ledger(settings)
    return settings


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the setup script."""

    parser = argparse.ArgumentParser(description="Initialize a record ledger")
    parser.add_argument(
        "--config",
        default=data_manager.CONFIG_FILE_NAME,
        help="Path of the configuration file to write (default: config.ini)",
    )
    parser.add_argument(
        "--data-file",
        default=DEFAULT_STORE_NAME,
        help="Store file name, relative to the configuration file (default: records.txt)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Audit log file name (default: '<data file>_log')",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the configuration file if it already exists.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the setup script."""

    args = parse_args(argv)
    config_path = Path(args.config).expanduser().resolve()

    print("--- Record Ledger Setup ---")
    print(f"Writing configuration: {config_path}")

    try:
        settings = initialize_ledger(
            config_path,
            data_file=args.data_file,
            log_file=args.log_file,
            overwrite=args.force,
        )
    except FileExistsError as exc:
        print(f"\n[ERROR] {exc}")
        print("Run with --force to overwrite the existing file if appropriate.")
        return 1
    except (PermissionError, OSError) as exc:
        print(f"\n[ERROR] Unable to create ledger files: {exc}")
        return 1

    print(f"\n[SUCCESS] Store ready at '{settings.data_file}'.")
    print(f"Audit log at '{settings.log_file}'.")
    return 0


if __name__ == "__main__":  # pragma: no cover - exercised via manual runs
    sys.exit(main())
