import io

import pytest
from rich.console import Console

from _engine.console import custom_theme
from animation.spinner import ReviewSpinner


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def spinner(output):
    return ReviewSpinner(console=Console(file=output, theme=custom_theme, width=20))


def test_start_and_stop(spinner):
    spinner.start("[info]working[/info]")
    assert spinner.running

    spinner.stop()
    spinner.stop()
    assert not spinner.running


def test_succeed_stops_and_prints_check_mark(spinner, output):
    spinner.start("working")

    spinner.succeed("done")

    assert not spinner.running
    assert "✔ done" in output.getvalue()


def test_fail_stops_and_prints_cross(spinner, output):
    spinner.start("working")

    spinner.fail("broken")

    assert not spinner.running
    assert "✖ broken" in output.getvalue()


def test_update_shows_tail_of_partial_text(spinner):
    spinner.start("working")

    spinner.update("a" * 10 + "b" * 20)

    assert spinner._status.status.plain == "b" * 20
    spinner.stop()


def test_update_before_start_is_ignored(spinner, output):
    spinner.update("partial")

    assert not spinner.running
    assert output.getvalue() == ""


def test_log_prints_reply_verbatim(spinner, output):
    spinner.log("[bold]x[/bold]")

    assert "[bold]x[/bold]" in output.getvalue()


def test_disabled_spinner_prints_nothing(output):
    spinner = ReviewSpinner(enabled=False, console=Console(file=output, theme=custom_theme))

    spinner.start("working")
    spinner.update("partial")
    spinner.log("reply")
    spinner.succeed("done")

    assert not spinner.running
    assert output.getvalue() == ""
