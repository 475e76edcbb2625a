from unittest.mock import patch

import pytest

import main
from _data.openai import FAILURE_MESSAGE
from _types.config import UserOptions
from _types.errors import RemoteError
from _types.model import ReadFileResult, RunOutcome, TaskKind


def test_parser_requires_a_task():
    with pytest.raises(SystemExit):
        main.build_parser().parse_args([])


def test_options_from_args(clean_env):
    args = main.build_parser().parse_args(
        ["review", "--model", "gpt-4", "--fresh-context", "--extensions", ".py,.ts", "--security-regex", "key"]
    )

    options = main.options_from_args(args)

    assert options.task == TaskKind.REVIEW
    assert options.openai_model == "gpt-4"
    assert options.keep_conversation is False
    assert options.read_files_extensions == [".py", ".ts"]
    assert options.security_regex == "key"


class TestReportOutcomes:
    def test_failed_review_writes_report_and_exits_1(self, clean_env):
        outcomes = [
            (ReadFileResult(file_path="a.py"), RunOutcome(succeeded=True, messages=["Perfect!", "- bug"])),
            (ReadFileResult(file_path="b.py"), RunOutcome(succeeded=True, messages=["Perfect!"])),
        ]

        assert main.report_outcomes(UserOptions(task="review"), outcomes) == 1
        report = (clean_env / ".hookgpt_review.md").read_text(encoding="utf-8")
        assert "## a.py" in report and "b.py" not in report

    def test_api_failure_does_not_block_the_commit(self, clean_env):
        outcomes = [(ReadFileResult(file_path="a.py"), RunOutcome(succeeded=False, messages=[FAILURE_MESSAGE]))]

        assert main.report_outcomes(UserOptions(task="review"), outcomes) == 0

    def test_generated_tests_are_written(self, clean_env):
        source = clean_env / "math.py"
        outcomes = [(ReadFileResult(file_path=str(source)), RunOutcome(succeeded=True, messages=["```\nx\n```"]))]

        assert main.report_outcomes(UserOptions(task="test"), outcomes) == 0
        assert (clean_env / "__test__" / "math.test.py").exists()


def test_main_rejects_invalid_security_regex_before_reading_files(clean_env):
    with patch("main.read_files") as read_files:
        assert main.main(["review", "--security-regex", "sk-["]) == 1

    read_files.assert_not_called()


def test_main_without_files_sends_nothing(clean_env):
    with patch("main.read_files", return_value=[]), patch("main.create_session") as create_session:
        assert main.main(["commit"]) == 0

    create_session.assert_not_called()


def test_main_runs_every_file_even_after_a_failure(clean_env, fake_session):
    files = [
        ReadFileResult(file_path="a.py", file_content="def a():\n    pass\n"),
        ReadFileResult(file_path="b.py", file_content="def b():\n    pass\n"),
    ]
    session = fake_session([RemoteError("down"), "OK", "Perfect!"])

    with patch("main.read_files", return_value=files), patch("main.create_session", return_value=session):
        assert main.main(["review", "--fresh-context"]) == 0

    assert len(session.calls) == 3
    assert session.sent_texts[-1] == "def b():\n    pass"
