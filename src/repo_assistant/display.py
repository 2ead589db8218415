# display.py
# All terminal output for the assistant.
#
# This module owns presentation entirely. The orchestrator and session loop
# never format strings for the terminal; they call named functions here.
#
# Colour language:
#   cyan: session / routing events
#   magenta: action requests and observations
#   green: final answers, successful observations
#   yellow: loop bound and other soft stops
#   red: failed observations, turn failures

import json

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from repo_assistant.models import ActionRequest, ActionResult

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    value = value.replace("\n", " ")
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


def banner(model: str, session_id: str, sentinel: str) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]GitHub Repository Assistant[/bold cyan]\n"
            "[dim]Create, inspect, update, push, clone and delete your repositories.[/dim]\n\n"
            f"[dim]Model   :[/dim] [white]{model}[/white]\n"
            f"[dim]Session :[/dim] [white]{session_id}[/white]\n"
            f"[dim]Type[/dim] [bold white]{sentinel}[/bold white] [dim]to quit.[/dim]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def read_utterance() -> str:
    return console.input("[bold cyan]User:[/bold cyan] ")


def goodbye() -> None:
    console.print("[dim]Session closed.[/dim]")


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


def action_requested(request: ActionRequest) -> None:
    args = request.arguments if isinstance(request.arguments, str) else json.dumps(request.arguments)
    console.print(
        f"  [magenta]Action[/magenta]   [bold white]{request.name}[/bold white]"
        f"  [dim]{escape(_mono(args, 100))}[/dim]",
        highlight=False,
    )


def action_observed(result: ActionResult) -> None:
    color = "green" if result.ok else "red"
    console.print(
        f"  [magenta]Observe[/magenta]  [{color}]{escape(_mono(result.content, 140))}[/{color}]",
        highlight=False,
    )


def loop_bound_reached(rounds: int) -> None:
    console.print(
        _label("LOOP BOUND", "yellow"),
        f"[yellow] Stopped after {rounds} action round(s) without a final answer.[/yellow]",
    )


# ---------------------------------------------------------------------------
# Turn outcome
# ---------------------------------------------------------------------------


def final_answer(text: str) -> None:
    console.print()
    console.print(
        Panel(
            Text(text),
            title=_label("AI", "green"),
            title_align="left",
            border_style="green",
            padding=(0, 2),
        )
    )
    console.print()


def turn_failed(reason: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold red]This turn could not be completed.[/bold red]\n\n"
            f"[white]{escape(reason)}[/white]\n\n"
            "[dim]Your message was kept; you can try again.[/dim]",
            title=_label("TURN FAILED", "red"),
            title_align="left",
            border_style="red",
            padding=(0, 2),
        )
    )
    console.print()
