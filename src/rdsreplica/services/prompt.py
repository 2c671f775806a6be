"""Choice prompts used when discovery finds more than one candidate."""

from typing import List, Protocol, Sequence, Tuple

from rich.console import Console
from rich.prompt import Prompt

from rdsreplica.errors import SelectionAbortError

ChoiceOption = Tuple[str, str]


class ChoicePrompt(Protocol):
    def choose(self, label: str, options: Sequence[ChoiceOption], default: str) -> str:
        """Return the value of the selected option."""


def _ensure_options(label: str, options: Sequence[ChoiceOption]) -> List[str]:
    values = [value for value, _ in options]
    if not values:
        raise SelectionAbortError(f"No options available for selection: {label}")
    return values


class RichChoicePrompt:
    """Numbered menu on the terminal, answered by index."""

    def __init__(self, console: Console):
        self.console = console

    def choose(self, label: str, options: Sequence[ChoiceOption], default: str) -> str:
        values = _ensure_options(label, options)
        default_index = values.index(default) + 1 if default in values else 1

        self.console.print(f"[bold]{label}[/bold]")
        for index, (_, option_label) in enumerate(options, start=1):
            self.console.print(f"  [cyan]{index}[/cyan]) {option_label}")

        try:
            answer = Prompt.ask(
                "Select an option",
                console=self.console,
                choices=[str(index) for index in range(1, len(values) + 1)],
                default=str(default_index),
                show_choices=False,
            )
        except EOFError as exc:
            raise SelectionAbortError(f"No selection made: {label}") from exc

        return values[int(answer) - 1]


class DefaultChoicePrompt:
    """Non-interactive prompt: always takes the default option."""

    def __init__(self, logger):
        self.logger = logger

    def choose(self, label: str, options: Sequence[ChoiceOption], default: str) -> str:
        values = _ensure_options(label, options)
        selected = default if default in values else values[0]
        self.logger.info("%s Using default: %s", label, selected)
        return selected
