"""
Tests for ${input:Label} prompting.
Run with: python -m pytest tests/test_inputs.py -v
"""
import pytest

from conftest import FakePrompt
from cmdcockpit.errors import InputCancelled
from cmdcockpit.inputs import InputResolver, placeholder_labels


def test_labels_distinct_in_order():
    assert placeholder_labels("${input:B} ${input:A} ${input:B}") == ["B", "A"]
    assert placeholder_labels(None) == []


def test_each_label_asked_once():
    prompt = FakePrompt({"Branch": "main", "Env": "prod"})
    resolver = InputResolver(prompt)
    out = resolver.resolve("git checkout ${input:Branch} && deploy ${input:Env} ${input:Branch}")
    assert out == "git checkout main && deploy prod main"
    assert prompt.asked == ["Branch", "Env"]


def test_answers_shared_across_fields():
    prompt = FakePrompt({"Port": "8080"})
    resolver = InputResolver(prompt)
    assert resolver.resolve_all(["serve ${input:Port}", "open :${input:Port}"]) == ["serve 8080", "open :8080"]
    assert prompt.asked == ["Port"]


def test_text_without_placeholders_needs_no_prompt():
    resolver = InputResolver(None)
    assert resolver.resolve("echo hi") == "echo hi"
    assert resolver.resolve(None) is None


def test_empty_answer_allowed():
    resolver = InputResolver(FakePrompt({"Flags": ""}))
    assert resolver.resolve("run ${input:Flags}") == "run "


def test_cancelled_prompt():
    resolver = InputResolver(FakePrompt({}))
    with pytest.raises(InputCancelled) as info:
        resolver.resolve("deploy ${input:Env}")
    assert info.value.label == "Env"


def test_no_prompt_available():
    with pytest.raises(InputCancelled):
        InputResolver(None).resolve("${input:X}")
