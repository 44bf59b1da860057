"""Tests for the grader registry."""
import pytest

from lesson_quiz.domain.common.errors import GraderNotConfiguredError, UnsupportedQuestionTypeError
from lesson_quiz.domain.quiz.graders import SUPPORTED_TYPES, GraderRegistry, build_default_registry
from lesson_quiz.domain.quiz.graders.multiple_choice import MultipleChoiceGrader
from lesson_quiz.domain.quiz.graders.true_false import TrueFalseGrader


def test_default_registry_covers_every_supported_type():
    registry = build_default_registry()
    assert set(registry.graders) == SUPPORTED_TYPES
    for question_type in SUPPORTED_TYPES:
        assert registry.require(question_type).question_type == question_type


def test_require_normalizes_tag():
    registry = build_default_registry()
    assert isinstance(registry.require("  True_False "), TrueFalseGrader)


def test_unknown_type_is_unsupported():
    registry = build_default_registry()
    with pytest.raises(UnsupportedQuestionTypeError) as excinfo:
        registry.require("essay")
    assert excinfo.value.message == "unsupported question type for this release"
    assert registry.is_supported("essay") is False
    assert registry.is_supported("CLOZE") is True


def test_supported_type_without_grader_is_configuration_error():
    registry = GraderRegistry([MultipleChoiceGrader()])
    with pytest.raises(GraderNotConfiguredError):
        registry.require("cloze")


def test_registry_is_read_only():
    registry = build_default_registry()
    with pytest.raises(TypeError):
        registry.graders["essay"] = MultipleChoiceGrader()
