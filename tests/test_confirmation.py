"""
Tests for the nuke confirmation prompt and countdown.
"""

import io

from rich.console import Console

from cloudsweep.core.confirmation import (
    NUKE_CONFIRMATION_WORD,
    confirm_nuke,
    countdown,
    prompt_for_confirmation,
)


def quiet_console():
    return Console(file=io.StringIO(), width=200)


def answers(*values):
    queue = list(values)

    def ask(prompt, console=None):
        value = queue.pop(0)
        if isinstance(value, BaseException):
            raise value
        return value

    return ask


def never_ask(prompt, console=None):
    raise AssertionError("prompt should not be shown")


class TestPrompt:
    """Tests for prompt_for_confirmation."""

    def test_accepts_word(self):
        """Test typing the confirmation word approves."""
        assert prompt_for_confirmation(quiet_console(), ask=answers(NUKE_CONFIRMATION_WORD))

    def test_second_attempt(self):
        """Test one wrong answer is forgiven."""
        assert prompt_for_confirmation(quiet_console(), ask=answers("yes", " nuke "))

    def test_gives_up(self):
        """Test two wrong answers reject."""
        console = quiet_console()
        assert not prompt_for_confirmation(console, ask=answers("yes", "y"))
        assert "Maximum confirmation attempts" in console.file.getvalue()

    def test_interrupt(self):
        """Test Ctrl+C and end of input reject."""
        assert not prompt_for_confirmation(quiet_console(), ask=answers(KeyboardInterrupt()))
        assert not prompt_for_confirmation(quiet_console(), ask=answers(EOFError()))


class TestCountdown:
    """Tests for the forced-run countdown."""

    def test_completes(self):
        """Test the countdown sleeps once per second."""
        sleeps = []
        assert countdown(quiet_console(), seconds=3, sleep=sleeps.append)
        assert sleeps == [1, 1, 1]

    def test_interrupted(self):
        """Test Ctrl+C during the countdown aborts."""

        def sleep(seconds):
            raise KeyboardInterrupt

        assert not countdown(quiet_console(), seconds=3, sleep=sleep)


class TestConfirmNuke:
    """Tests for confirm_nuke."""

    def test_nothing_to_nuke(self):
        """Test no resources means no prompt and no nuke."""
        assert not confirm_nuke(False, console=quiet_console(), ask=never_ask)

    def test_dry_run(self):
        """Test dry runs never prompt."""
        assert not confirm_nuke(True, dry_run=True, console=quiet_console(), ask=never_ask)

    def test_force_counts_down(self):
        """Test force skips the prompt but still counts down."""
        sleeps = []
        assert confirm_nuke(
            True,
            force=True,
            console=quiet_console(),
            ask=never_ask,
            sleep=sleeps.append,
            countdown_seconds=2,
        )
        assert sleeps == [1, 1]

    def test_prompt(self):
        """Test the default path prompts."""
        assert confirm_nuke(True, console=quiet_console(), ask=answers(NUKE_CONFIRMATION_WORD))
