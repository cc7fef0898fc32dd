"""Interactive numbered menu on top of the engine.

The session prompts for names and amounts, calls one engine operation per menu
entry and, when the engine reports an unresolved ambiguity, shows the numbered
candidates and retries with the user's pick.
"""

from __future__ import annotations

from typing import Callable, Optional

from . import core_logic
from .constants import ErrorKind
from .resolver import MatchResult, UniqueMatch


MENU_OPTIONS = (
    ("1", "Add a Record"),
    ("2", "Delete a Record"),
    ("3", "Search for a Record"),
    ("4", "Update a Record's Name"),
    ("5", "Update a Record's Amount"),
    ("6", "Print Total Amount of Records"),
    ("7", "Print All Records Sorted"),
    ("8", "Exit"),
)


def format_candidates(match: MatchResult) -> list[str]:
    """Render resolver candidates as numbered ``n) name,amount`` lines."""
    return [f"{candidate.position}) {candidate.record.line}" for candidate in match.candidates]


class MenuSession:
    """One interactive session bound to a ledger.

    Parameters
    ----------
    context : RuntimeContext
        Ledger the session operates on.
    input_fn, output : callable
        Prompt and print functions; swapped out in tests.
    """

    def __init__(
        self,
        context: core_logic.RuntimeContext,
        input_fn: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ) -> None:
        self.context = context
        self.input = input_fn
        self.output = output
        self.handlers = {
            "1": self.add,
            "2": self.delete,
            "3": self.search,
            "4": self.rename,
            "5": self.update_amount,
            "6": self.total,
            "7": self.list_sorted,
        }

    def run(self) -> int:
        """Loop over the menu until the user exits or input runs out."""
        try:
            while True:
                self.show_menu()
                choice = self.input("Enter your choice: ").strip()
                if choice == "8":
                    break
                handler = self.handlers.get(choice)
                if handler is None:
                    self.output("Invalid option, please try again.")
                    continue
                handler()
        except EOFError:
            self.output("")
        self.output(core_logic.close_session(self.context).message)
        return 0

    def show_menu(self) -> None:
        self.output("")
        self.output("Record Management System")
        for number, label in MENU_OPTIONS:
            self.output(f"{number}. {label}")

    def show(self, result: core_logic.OperationResult) -> None:
        if not result.ok:
            self.output(f"Error: {result.message}")
            return
        self.output(result.message)
        if result.total is None:
            for record in result.records:
                self.output(record.line)

    def ask_selection(self, match: MatchResult, prompt: str) -> Optional[int]:
        """Print the candidates and read a number; ``None`` for non-numeric input."""
        for line in format_candidates(match):
            self.output(line)
        raw = self.input(prompt).strip()
        if not raw.isdigit():
            self.output("Invalid selection.")
            return None
        return int(raw)

    def with_selection(
        self,
        operation: Callable[[core_logic.Disambiguation], core_logic.OperationResult],
    ) -> core_logic.OperationResult:
        """Run ``operation`` and, on ambiguity, ask which candidate to use."""
        result = operation(core_logic.AUTO_FAIL)
        if result.error is not ErrorKind.AMBIGUOUS_UNRESOLVED or result.match is None:
            return result
        choice = self.ask_selection(
            result.match,
            "Enter the number of the record you want to perform the action: ",
        )
        if choice is None:
            return result
        return operation(core_logic.SelectIndex(choice))

    def add(self) -> None:
        self.output("Add record operation:")
        name = self.input("Enter record name: ").strip()
        amount = self.input("Enter new record amount: ").strip()
        result = core_logic.add_record(self.context, name, amount)
        if result.error is ErrorKind.AMBIGUOUS_UNRESOLVED and result.match is not None:
            decision = self.ask_add_decision(result.match)
            if decision is None:
                return
            result = core_logic.add_record(self.context, name, amount, decision)
        self.show(result)

    def ask_add_decision(self, match: MatchResult) -> Optional[core_logic.Disambiguation]:
        """Ask whether to merge into a similar record or create a new one."""
        if isinstance(match, UniqueMatch):
            self.output(
                f"Found one record named: {match.record.name}. "
                "Do you want to update its amount or create a new record?"
            )
            self.output("1) Update existing record amount")
            self.output("2) Create new record")
            answer = self.input("").strip()
            if answer == "1":
                return core_logic.SelectIndex(1)
            if answer == "2":
                return core_logic.CreateNew()
            self.output("Invalid option, please try again.")
            return None

        self.output("Several similar records exist:")
        choice = self.ask_selection(
            match,
            "Enter the number of the record to add to, or 0 to create a new record: ",
        )
        if choice is None:
            return None
        if choice == 0:
            return core_logic.CreateNew()
        return core_logic.SelectIndex(choice)

    def delete(self) -> None:
        self.output("Delete record operation:")
        name = self.input("Enter record name: ").strip()
        amount = self.input("Enter amount to delete from the record: ").strip()
        self.show(self.with_selection(
            lambda how: core_logic.delete_record(self.context, name, amount, how)
        ))

    def search(self) -> None:
        keyword = self.input("Enter a keyword: ").strip()
        result = core_logic.search_records(self.context, keyword)
        if not result.ok:
            self.show(result)
            return
        self.output("Search results:")
        for line in format_candidates(result.match):
            self.output(line)

    def rename(self) -> None:
        self.output("Update Record Name Operation:")
        current = self.input("Enter current record name: ").strip()
        new_name = self.input("Enter new record name: ").strip()
        self.show(self.with_selection(
            lambda how: core_logic.rename_record(self.context, current, new_name, how)
        ))

    def update_amount(self) -> None:
        self.output("Update record amount operation:")
        name = self.input("Enter record name: ").strip()
        amount = self.input("Enter new record amount: ").strip()
        self.show(self.with_selection(
            lambda how: core_logic.update_amount(self.context, name, amount, disambiguation=how)
        ))

    def total(self) -> None:
        self.show(core_logic.total_amount(self.context))

    def list_sorted(self) -> None:
        self.show(core_logic.list_sorted(self.context))


def run_menu(
    context: core_logic.RuntimeContext,
    input_fn: Callable[[str], str] = input,
    output: Callable[[str], None] = print,
) -> int:
    """Run an interactive session and return the process exit code."""
    return MenuSession(context, input_fn=input_fn, output=output).run()
