"""
Nuke confirmation.

Before anything is deleted the operator either types the confirmation
word or, with ``--force``, sits through a short countdown they can
interrupt with Ctrl+C.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from rich.console import Console
from rich.prompt import Prompt

logger = logging.getLogger(__name__)

NUKE_CONFIRMATION_WORD = "nuke"
MAX_CONFIRMATION_ATTEMPTS = 2
FORCE_COUNTDOWN_SECONDS = 10


def prompt_for_confirmation(
    console: Console,
    max_attempts: int = MAX_CONFIRMATION_ATTEMPTS,
    ask: Callable[..., str] = Prompt.ask,
) -> bool:
    """
    Ask the operator to type the confirmation word.

    Returns
    -------
    bool
        True once the word is typed, False after ``max_attempts`` misses
        or on Ctrl+C / end of input.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            answer = ask(
                f"[bold red]Are you sure you want to nuke all listed resources?[/bold red] "
                f"Enter '{NUKE_CONFIRMATION_WORD}' to confirm (or exit with ^C)",
                console=console,
            )
        except (KeyboardInterrupt, EOFError):
            console.print()
            return False
        if answer.strip() == NUKE_CONFIRMATION_WORD:
            return True
        if attempt < max_attempts:
            console.print(f"[yellow]Invalid value was entered: {answer!r}. Try again.[/yellow]")
    console.print("[red]Maximum confirmation attempts reached, not nuking.[/red]")
    return False


def countdown(
    console: Console,
    seconds: int = FORCE_COUNTDOWN_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Count down before a forced nuke. Ctrl+C aborts and returns False."""
    console.print(
        f"[bold yellow]The --force flag is set, resources will be deleted in {seconds} "
        "seconds. Press Ctrl+C to abort.[/bold yellow]"
    )
    try:
        for remaining in range(seconds, 0, -1):
            console.print(f"{remaining}...")
            sleep(1)
    except KeyboardInterrupt:
        console.print("[yellow]Aborted.[/yellow]")
        return False
    return True


def confirm_nuke(
    has_resources: bool,
    dry_run: bool = False,
    force: bool = False,
    console: Optional[Console] = None,
    ask: Callable[..., str] = Prompt.ask,
    sleep: Callable[[float], None] = time.sleep,
    countdown_seconds: int = FORCE_COUNTDOWN_SECONDS,
) -> bool:
    """
    Decide whether the nuke phase may run.

    Nothing found, dry run, a rejected prompt and an interrupted countdown
    all return False. No prompt is shown in the first two cases.
    """
    console = console or Console(stderr=True)
    if not has_resources:
        console.print("[green]Nothing to nuke, you're all good![/green]")
        return False
    if dry_run:
        logger.info("Not taking any action as this is a dry run")
        return False
    if force:
        return countdown(console, countdown_seconds, sleep)
    return prompt_for_confirmation(console, ask=ask)
