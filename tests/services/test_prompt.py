import io
import logging

import pytest
from rich.console import Console

import rdsreplica.services.prompt as prompt_module
from rdsreplica.errors import SelectionAbortError
from rdsreplica.services.prompt import DefaultChoicePrompt, RichChoicePrompt

OPTIONS = [("group-a", "group-a (VPC: vpc-1, 2 subnets)"), ("group-b", "group-b (VPC: vpc-2, 3 subnets)")]


def test_default_prompt_returns_default_option():
    prompt = DefaultChoicePrompt(logging.getLogger("rdsreplica.tests"))

    assert prompt.choose("Pick one", OPTIONS, default="group-b") == "group-b"


def test_default_prompt_falls_back_to_first_option_for_unknown_default():
    prompt = DefaultChoicePrompt(logging.getLogger("rdsreplica.tests"))

    assert prompt.choose("Pick one", OPTIONS, default="missing") == "group-a"


@pytest.mark.parametrize("prompt_class", [DefaultChoicePrompt, RichChoicePrompt])
def test_prompts_abort_without_options(prompt_class):
    argument = logging.getLogger("rdsreplica.tests")
    if prompt_class is RichChoicePrompt:
        argument = Console(file=io.StringIO())

    with pytest.raises(SelectionAbortError, match="No options available"):
        prompt_class(argument).choose("Pick one", [], default="x")


def test_rich_prompt_maps_answer_index_to_value(monkeypatch):
    captured = {}

    def fake_ask(question, **kwargs):
        captured.update(kwargs)
        return "2"

    monkeypatch.setattr(prompt_module.Prompt, "ask", fake_ask)
    console = Console(file=io.StringIO())

    selected = RichChoicePrompt(console).choose("Pick one", OPTIONS, default="group-a")

    assert selected == "group-b"
    assert captured["choices"] == ["1", "2"]
    assert captured["default"] == "1"
    assert "group-b (VPC: vpc-2, 3 subnets)" in console.file.getvalue()


def test_rich_prompt_turns_closed_input_into_selection_abort(monkeypatch):
    def closed_input(*_args, **_kwargs):
        raise EOFError

    monkeypatch.setattr(prompt_module.Prompt, "ask", closed_input)

    with pytest.raises(SelectionAbortError, match="No selection made"):
        RichChoicePrompt(Console(file=io.StringIO())).choose("Pick one", OPTIONS, default="group-a")
