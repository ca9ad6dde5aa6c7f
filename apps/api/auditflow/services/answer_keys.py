"""Typed access to the flat answer map.

Answers are stored as one flat ``dict[str, object]`` per submission. Option
answers live under their option id and conditional sub-answers under derived
keys built from the parent question id. Build keys here instead of formatting
strings at call sites.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from auditflow.schemas.forms import (
    OPTION_BEARING_TYPES,
    Question,
    QuestionOption,
    TableColumn,
)


def detail_key(question: Question) -> str:
    return f"{question.id}_detail"


def conditional_key(question: Question, value: str) -> str:
    return f"{question.id}_conditional_{value}"


def choice_justification_key(question: Question, choice: str) -> str:
    return f"{question.id}_{choice}_justification"


def justification_key(question: Question) -> str:
    return f"{question.id}_justification"


def table_cell_key(question: Question, row: int, column: TableColumn | str) -> str:
    column_id = column if isinstance(column, str) else column.id
    return f"{question.id}_row{row}_{column_id}"


def material_key(question: Question) -> str:
    return f"{question.id}_material"


def assessment_key(question: Question) -> str:
    return f"{question.id}_assessment"


def is_blank(value: object) -> bool:
    """True for None, blank strings and empty containers."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def stores_own_value(question: Question) -> bool:
    """Option-bearing, table and assessment-pair questions never store a value
    under their own id."""
    return question.type not in OPTION_BEARING_TYPES and question.type not in ("table", "assessmentPair")


def iter_question_keys(question: Question) -> Iterator[str]:
    """Every answer-map key a question can own, including derived keys."""
    if stores_own_value(question):
        yield question.id

    for option in question.options or []:
        if question.type in OPTION_BEARING_TYPES:
            yield option.id
        if question.type == "choiceWithJustification":
            yield choice_justification_key(question, option.id)

    if question.type == "yesNoWithDetail":
        yield detail_key(question)

    for rule in question.conditional_reveal:
        if question.type == "yesNoWithDetail":
            continue
        if rule.kind == "multiSelect":
            for option in rule.options or []:
                yield option.id
        else:
            yield conditional_key(question, rule.trigger_value)

    if question.type == "checkboxSetWithJustification":
        yield justification_key(question)

    if question.type == "table":
        for row in range(question.table_rows):
            for column in question.table_columns or []:
                yield table_cell_key(question, row, column)

    if question.type == "assessmentPair":
        yield material_key(question)
        yield assessment_key(question)


class AnswerView:
    """Read-only view of an answer map keyed by question objects."""

    def __init__(self, answers: Mapping[str, object] | None):
        self._answers: Mapping[str, object] = answers or {}

    def value(self, question: Question) -> object:
        return self._answers.get(question.id)

    def has_text(self, key: str) -> bool:
        return not is_blank(self._answers.get(key))

    def is_checked(self, option: QuestionOption | str) -> bool:
        option_id = option if isinstance(option, str) else option.id
        return self._answers.get(option_id) is True

    def any_checked(self, options: list[QuestionOption] | None) -> bool:
        return any(self.is_checked(option) for option in options or [])

    def detail(self, question: Question) -> object:
        return self._answers.get(detail_key(question))

    def cell(self, question: Question, row: int, column: TableColumn) -> object:
        return self._answers.get(table_cell_key(question, row, column))

    def material(self, question: Question) -> object:
        return self._answers.get(material_key(question))

    def assessment(self, question: Question) -> object:
        return self._answers.get(assessment_key(question))
