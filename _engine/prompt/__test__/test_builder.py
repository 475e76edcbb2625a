import pytest

from _data.prompts import COMMIT_PROMPT, REVIEW_PROMPT, TESTS_PROMPT
from _engine.prompt.builder import generate_prompt, read_file_content
from _types.errors import ConfigurationError, InputError
from _types.model import ReadFileResult, TaskKind

SOURCE = '''import os


@cache
def load(path):
    return open(path).read()


class Reader:
    def read(self):
        return load(os.getcwd())
'''


@pytest.mark.parametrize(
    "task, template",
    [(TaskKind.REVIEW, REVIEW_PROMPT), (TaskKind.TEST, TESTS_PROMPT), (TaskKind.COMMIT, COMMIT_PROMPT)],
)
def test_first_prompt_is_task_template(task, template):
    prompts = generate_prompt(task, ReadFileResult(file_content=SOURCE))

    assert prompts[0] == template.strip()


def test_code_units_follow_verbatim():
    prompts = generate_prompt(TaskKind.REVIEW, ReadFileResult(file_path="reader.py", file_content=SOURCE))

    assert prompts[1:] == [
        "@cache\ndef load(path):\n    return open(path).read()",
        "class Reader:\n    def read(self):\n        return load(os.getcwd())",
    ]


def test_custom_instructions_suffix():
    prompts = generate_prompt(TaskKind.TEST, ReadFileResult(file_content=SOURCE), custom_instructions="Use unittest.")

    assert prompts[0] == f"{TESTS_PROMPT.strip()}\nUse unittest."


def test_no_code_units_gives_task_prompt_only():
    assert len(generate_prompt(TaskKind.REVIEW, ReadFileResult(file_content="VALUE = 1\n"))) == 1


def test_commit_splits_diff_per_file():
    diff = "diff --git a/a.py b/a.py\n+x\ndiff --git a/b.py b/b.py\n-y\n"

    prompts = generate_prompt(TaskKind.COMMIT, ReadFileResult(file_path="a.py", file_content=diff))

    assert prompts[1:] == ["diff --git a/a.py b/a.py\n+x", "diff --git a/b.py b/b.py\n-y"]


def test_reads_file_when_content_missing(tmp_path):
    source = tmp_path / "reader.py"
    source.write_text(SOURCE, encoding="utf-8")

    prompts = generate_prompt(TaskKind.REVIEW, ReadFileResult(file_path=str(source)))

    assert len(prompts) == 3


def test_unknown_task_is_configuration_error():
    with pytest.raises(ConfigurationError):
        generate_prompt(TaskKind.REVIEW, ReadFileResult(file_content=SOURCE), templates={})


@pytest.mark.parametrize("file_result", [None, ReadFileResult(), ReadFileResult(file_content="")])
def test_missing_input_is_input_error(file_result):
    with pytest.raises(InputError):
        read_file_content(file_result)


def test_unreadable_path_is_input_error(tmp_path):
    with pytest.raises(InputError):
        read_file_content(ReadFileResult(file_path=str(tmp_path / "missing.py")))
