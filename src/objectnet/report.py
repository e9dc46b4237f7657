"""Rich console rendering of validation records."""

from enum import Enum

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from .records import FieldValidation, ObjectValidation


def _member_label(key: object) -> str:
    return key.name if isinstance(key, Enum) else str(key)


class ValidationReportFormatter:
    """Formats validation records as a rich tree.

    Field failures are leaves and nested records are branches. A record that
    was already rendered (shared, or reached again through a cycle) is shown
    as a reference leaf instead of being expanded again.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def render(self, record: ObjectValidation, title: str = "Validation") -> Tree:
        status = "[bold green]VALID[/bold green]" if record.is_valid else "[bold red]INVALID[/bold red]"
        tree = Tree(f"{escape(title)} {status}")
        self._add_entries(tree, record, {id(record)})
        return tree

    def print(self, record: ObjectValidation, title: str = "Validation") -> None:
        """Print the record tree and a one-line summary."""
        self.console.print(self.render(record, title))

        failures = list(record.iter_failures())
        if failures:
            self.console.print(f"[red]{len(failures)} field failure(s)[/red]")
        else:
            self.console.print("[green]No field failures[/green]")

    def _add_entries(self, branch: Tree, record: ObjectValidation, seen: set[int]) -> None:
        for key, value in record.items():
            label = escape(_member_label(key))

            if isinstance(value, ObjectValidation):
                if id(value) in seen:
                    branch.add(f"[cyan]{label}[/cyan] [dim](see above)[/dim]")
                    continue
                seen.add(id(value))
                if value.is_valid:
                    branch.add(f"[cyan]{label}[/cyan] [green]valid[/green]")
                else:
                    child = branch.add(f"[cyan]{label}[/cyan]")
                    self._add_entries(child, value, seen)
            elif isinstance(value, FieldValidation):
                branch.add(
                    f"[yellow]{label}[/yellow]: {escape(str(value.validation))} "
                    f"[dim](value={escape(repr(value.value))})[/dim]"
                )
            else:
                branch.add(f"[yellow]{label}[/yellow]: {escape(str(value))}")
