from __future__ import annotations

from typing import Optional, Protocol, Sequence

import click


class Prompter(Protocol):
    def text(self, message: str, *, default: Optional[str] = None, hide_input: bool = False) -> str: ...

    def choice(self, message: str, *, choices: Sequence[str], default: Optional[str] = None) -> str: ...


class ClickPrompter:
    """Interactive prompts on the terminal."""

    def text(self, message: str, *, default: Optional[str] = None, hide_input: bool = False) -> str:
        value = click.prompt(
            message,
            default=default,
            hide_input=hide_input,
            show_default=default not in (None, ""),
            type=str,
        )
        return str(value)

    def choice(self, message: str, *, choices: Sequence[str], default: Optional[str] = None) -> str:
        value = click.prompt(
            message,
            type=click.Choice(list(choices)),
            default=default if default in choices else None,
            show_choices=True,
        )
        return str(value)
