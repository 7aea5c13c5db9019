"""Console output for the CLI.

Rendered maps are written to stdout; tips, warnings and error panels go
to stderr so that ``conceptforge generate notes.md > map.md`` stays clean.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from conceptforge.core.exceptions import get_error_info, get_root_cause


@dataclass
class _ConsoleState:
    out: Optional[Console] = None
    err: Optional[Console] = None
    verbose: bool = False


_state = _ConsoleState()


def get_console() -> Console:
    """Shared stdout console."""
    if _state.out is None:
        _state.out = Console()
    return _state.out


def _err() -> Console:
    if _state.err is None:
        _state.err = Console(stderr=True)
    return _state.err


def set_verbose_mode(enabled: bool) -> None:
    """Show tracebacks under error panels (--verbose)."""
    _state.verbose = enabled


def tip(message: str) -> None:
    _err().print(f"  [dim]Tip: {message}[/dim]")


def warn(message: str) -> None:
    warning = Text("Warning: ", style="yellow")
    warning.append(message)
    _err().print(warning)


# (heading, heading style, body style)
_WHY = ("Why it happened:", "bold cyan", "cyan")
_FIX = ("How to fix:", "bold green", "green")


def _section(
    text: Text, header: Tuple[str, str, str], lines: Iterable[str], bullet: str
) -> None:
    title, title_style, body_style = header
    text.append(f"{title}\n", style=title_style)
    for line in lines:
        text.append(f"  {bullet}{line}\n", style=body_style)


class ErrorRenderer:
    """Error panel with the message, root cause, why and how-to-fix.

    Usage::

        try:
            result = pipeline.run(text)
        except ConceptForgeError as e:
            ErrorRenderer.render(e, context="While processing notes.md")
            raise typer.Exit(1)
    """

    @staticmethod
    def render(
        exc: BaseException,
        context: str = "",
        show_traceback: Optional[bool] = None,
    ) -> None:
        info = get_error_info(exc)
        root = get_root_cause(exc)
        root_message = str(root) if root is not exc else ""
        if root_message == info["error"]:
            root_message = ""

        body = Text()
        if context:
            body.append(f"{context}\n\n", style="dim")
        body.append(f"{info['error']}\n\n", style="bold red")
        if root_message:
            body.append("Root cause: ", style="bold yellow")
            body.append(f"{root_message}\n\n", style="yellow")
        _section(body, _WHY, [info["why"]], bullet="")
        body.append("\n")
        _section(body, _FIX, info["howToFix"], bullet="- ")

        _err().print(
            Panel(
                body,
                title=f"[bold red]Error: {info['errorCode']}[/bold red]",
                border_style="red",
                padding=(1, 2),
            )
        )

        verbose = _state.verbose if show_traceback is None else show_traceback
        if verbose:
            _err().print(
                "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
                markup=False,
                highlight=False,
            )
