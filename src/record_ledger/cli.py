"""Command-line entry points for the record ledger.

All orchestration in this module is limited to argparse wiring, prompting and
rendering. Every sub-command translates its arguments into one engine call and
prints the :class:`~record_ledger.core_logic.OperationResult` it gets back, so
the same engine can sit behind any other front-end.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping, MutableMapping, Optional, Sequence

from . import core_logic, data_manager, log
from .constants import ErrorKind
from .menu import format_candidates, run_menu


@dataclass(frozen=True)
class CommandSpec:
    """Describe how a CLI sub-command is configured and executed."""

    name: str
    help_text: str
    register: Callable[[argparse._SubParsersAction[argparse.ArgumentParser]], argparse.ArgumentParser]
    execute: Callable[[core_logic.RuntimeContext, argparse.Namespace], int]


EXIT_OK = 0
EXIT_ERROR = 1
EXIT_RULE_VIOLATION = 2
EXIT_MISSING_FILE = 3


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="ledger-cli",
        description="Manage a flat-file ledger of named records.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional path to config.ini (searched upward from the working directory by default).",
    )
    source.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Use this store file directly; its audit log is '<store>_log'.",
    )
    return parser


def configure_subcommands(
    parser: argparse.ArgumentParser,
) -> Mapping[str, CommandSpec]:
    """Wire all CLI sub-commands onto the supplied parser."""
    subparsers = parser.add_subparsers(dest="command", required=True, title="commands")
    write_specs = register_write_commands(subparsers)
    read_specs = register_read_commands(subparsers)
    return build_command_table([*write_specs.values(), *read_specs.values()])


def register_write_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> Dict[str, CommandSpec]:
    """Declare mutating CLI commands."""
    specs = {
        "add": register_add_command(subparsers),
        "delete": register_delete_command(subparsers),
        "rename": register_rename_command(subparsers),
        "set-amount": register_set_amount_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def register_read_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> Dict[str, CommandSpec]:
    """Declare read-only and interactive CLI commands."""
    specs = {
        "search": register_search_command(subparsers),
        "total": register_total_command(subparsers),
        "list": register_list_command(subparsers),
        "menu": register_menu_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def add_disambiguation_arguments(parser: argparse.ArgumentParser, *, allow_create: bool = False) -> None:
    """Attach the mutually exclusive options that settle ambiguous keywords."""
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--choice", type=int, default=None, help="1-based position among the matching records.")
    group.add_argument("--merge-into", dest="merge_into", default=None, help="Exact name of the matching record to use.")
    group.add_argument(
        "--prefer-exact",
        dest="prefer_exact",
        action="store_true",
        help="Use the record whose name equals the keyword when several match.",
    )
    if allow_create:
        group.add_argument(
            "--create-new",
            dest="create_new",
            action="store_true",
            help="Create a distinct record instead of merging into a similar one.",
        )


def register_add_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``add``."""
    name = "add"
    help_text = "Add an amount to a record, creating it when needed."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("name")
        parser.add_argument("amount")
        add_disambiguation_arguments(parser, allow_create=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_add)


def register_delete_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``delete``."""
    name = "delete"
    help_text = "Remove an amount from a record; a record reaching zero is deleted."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("name")
        parser.add_argument("amount")
        add_disambiguation_arguments(parser)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_delete)


def register_rename_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``rename``."""
    name = "rename"
    help_text = "Change the name of a record."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("current_name")
        parser.add_argument("new_name")
        add_disambiguation_arguments(parser)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_rename)


def register_set_amount_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``set-amount``."""
    name = "set-amount"
    help_text = "Replace the amount of a record."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("name")
        parser.add_argument("amount")
        add_disambiguation_arguments(parser)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_set_amount)


def register_search_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``search``."""
    name = "search"
    help_text = "List the records whose name contains a keyword."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("keyword")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_search)


def register_total_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``total``."""
    name = "total"
    help_text = "Print the sum of all record amounts."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_total)


def register_list_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``list``."""
    name = "list"
    help_text = "Print all records sorted."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_list)


def register_menu_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``menu``."""
    name = "menu"
    help_text = "Start the interactive record management menu."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_menu_command)


def load_runtime_context(
    config_path: Optional[Path] = None,
    store_path: Optional[Path] = None,
) -> core_logic.RuntimeContext:
    """Resolve the runtime context for CLI operations."""
    if store_path is not None:
        return core_logic.open_ledger(data_manager.settings_for_store(store_path))
    return core_logic.load_runtime_context(config_path)


def dispatch_command(
    context: core_logic.RuntimeContext,
    args: argparse.Namespace,
    command_table: Mapping[str, CommandSpec],
) -> int:
    """Dispatch the parsed arguments to the configured executor."""
    if not hasattr(args, "command") or args.command is None:
        raise KeyError("No command specified")
    spec = command_table.get(args.command)
    if spec is None:
        raise KeyError(f"Unknown command: {args.command}")
    return spec.execute(context, args)


def build_command_table(
    specs: Iterable[CommandSpec],
) -> MutableMapping[str, CommandSpec]:
    """Build an index of command specifications keyed by command name."""
    table: Dict[str, CommandSpec] = {}
    for spec in specs:
        if spec.name in table:
            raise ValueError(f"Duplicate command name: {spec.name}")
        table[spec.name] = spec
    return table


def translate_disambiguation(args: argparse.Namespace) -> core_logic.Disambiguation:
    """Translate the disambiguation options into an engine strategy."""
    if getattr(args, "choice", None) is not None:
        return core_logic.SelectIndex(args.choice)
    if getattr(args, "merge_into", None):
        return core_logic.MergeInto(args.merge_into)
    if getattr(args, "create_new", False):
        return core_logic.CreateNew()
    if getattr(args, "prefer_exact", False):
        return core_logic.PreferExactName()
    return core_logic.AUTO_FAIL


def render_result(result: core_logic.OperationResult, output: Callable[[str], None] = print) -> int:
    """Print an engine result and return the matching exit code."""
    if not result.ok:
        output(f"Error: {result.message}")
        if result.error is ErrorKind.AMBIGUOUS_UNRESOLVED and result.match is not None:
            for line in format_candidates(result.match):
                output(line)
            output("Re-run with --choice N, --merge-into NAME or --create-new to decide.")
        return exit_code_for(result)

    output(result.message)
    if result.total is None:
        for record in result.records:
            output(record.line)
    return EXIT_OK


def exit_code_for(result: core_logic.OperationResult) -> int:
    """Map a failed result onto the CLI exit codes."""
    if result.ok:
        return EXIT_OK
    if result.error is ErrorKind.IO_ERROR:
        return EXIT_MISSING_FILE
    return EXIT_RULE_VIOLATION


def run_add(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the add workflow in the engine."""
    result = core_logic.add_record(context, args.name, args.amount, translate_disambiguation(args))
    return render_result(result)


def run_delete(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the delete workflow in the engine."""
    result = core_logic.delete_record(context, args.name, args.amount, translate_disambiguation(args))
    return render_result(result)


def run_rename(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the rename workflow in the engine."""
    result = core_logic.rename_record(context, args.current_name, args.new_name, translate_disambiguation(args))
    return render_result(result)


def run_set_amount(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the amount update workflow in the engine."""
    result = core_logic.update_amount(
        context,
        args.name,
        args.amount,
        disambiguation=translate_disambiguation(args),
    )
    return render_result(result)


def run_search(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the search workflow and print every numbered match."""
    result = core_logic.search_records(context, args.keyword)
    if not result.ok:
        return render_result(result)
    print("Search results:")
    for line in format_candidates(result.match):
        print(line)
    return EXIT_OK


def run_total(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the total reporting workflow."""
    return render_result(core_logic.total_amount(context))


def run_list(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the sorted listing workflow."""
    return render_result(core_logic.list_sorted(context))


def run_menu_command(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the interactive menu loop."""
    return run_menu(context)


def handle_cli_error(error: Exception) -> int:
    """Convert raised exceptions into user-friendly exit codes."""
    if isinstance(error, (FileNotFoundError, PermissionError)):
        log.error("%s", error)
        return EXIT_MISSING_FILE
    if isinstance(error, KeyError):
        log.error("Configuration problem: %s", error)
        return EXIT_RULE_VIOLATION
    log.error("%s", error)
    return EXIT_ERROR


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point that orchestrates parsing and execution."""
    parser = build_parser()
    command_table = configure_subcommands(parser)
    args = parser.parse_args(argv)
    try:
        context = load_runtime_context(getattr(args, "config", None), getattr(args, "store", None))
        return dispatch_command(context, args, command_table)
    except Exception as error:  # pragma: no cover - centralised error handler tested separately
        return handle_cli_error(error)
