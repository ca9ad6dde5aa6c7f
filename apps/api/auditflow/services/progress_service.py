"""Completion progress for audit form submissions.

Each question type has one completeness rule. Section progress is the share
of answered questions; overall progress is the plain mean of the form
sections, so a short section weighs as much as a long checklist.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import get_args

from auditflow.schemas.forms import (
    ROLE_CHOICE_VALUES,
    YES_NO_VALUES,
    FormDefinition,
    Question,
    QuestionType,
    Section,
)
from auditflow.services.answer_keys import (
    AnswerView,
    choice_justification_key,
    conditional_key,
    is_blank,
    justification_key,
)

CompletenessRule = Callable[[Question, AnswerView], bool]

# Questions only an assessor can complete; excluded from the submit gate.
ASSESSOR_GATED_TYPES: frozenset[str] = frozenset({"assessmentPair"})


def _text_answered(question: Question, answers: AnswerView) -> bool:
    return answers.has_text(question.id)


def _yes_no_answered(question: Question, answers: AnswerView) -> bool:
    return answers.value(question) in YES_NO_VALUES


def _yes_no_with_detail_answered(question: Question, answers: AnswerView) -> bool:
    value = answers.value(question)
    if value not in YES_NO_VALUES:
        return False
    if question.reveal_for(value) is None:
        return True
    return not is_blank(answers.detail(question))


def _role_choice_answered(question: Question, answers: AnswerView) -> bool:
    return answers.value(question) in ROLE_CHOICE_VALUES


def _options_answered(question: Question, answers: AnswerView) -> bool:
    return answers.any_checked(question.options)


def _single_choice_answered(question: Question, answers: AnswerView) -> bool:
    value = answers.value(question)
    if not isinstance(value, str) or not value.strip():
        return False
    rule = question.reveal_for(value)
    if rule is None:
        return True
    if rule.kind == "multiSelect":
        return answers.any_checked(rule.options)
    return answers.has_text(conditional_key(question, value))


def _file_answered(question: Question, answers: AnswerView) -> bool:
    value = answers.value(question)
    if isinstance(value, dict):
        name = value.get("name")
        return isinstance(name, str) and name.strip() != ""
    if isinstance(value, str):
        return value.strip() != ""
    return False


def _table_answered(question: Question, answers: AnswerView) -> bool:
    columns = [c for c in question.table_columns or [] if not c.is_row_index]
    for row in range(question.table_rows):
        for column in columns:
            cell = answers.cell(question, row, column)
            if column.kind == "checkbox":
                if cell is True:
                    return True
            elif not is_blank(cell) and cell is not False:
                return True
    return False


def _assessment_pair_answered(question: Question, answers: AnswerView) -> bool:
    return not is_blank(answers.material(question)) and not is_blank(
        answers.assessment(question)
    )


def _choice_with_justification_answered(question: Question, answers: AnswerView) -> bool:
    value = answers.value(question)
    if not isinstance(value, str) or not value.strip():
        return False
    if not question.requires_justification:
        return True
    return answers.has_text(choice_justification_key(question, value))


def _checkbox_set_with_justification_answered(question: Question, answers: AnswerView) -> bool:
    if not answers.any_checked(question.options):
        return False
    if not question.requires_justification:
        return True
    return answers.has_text(justification_key(question))


COMPLETENESS_RULES: dict[str, CompletenessRule] = {
    "text": _text_answered,
    "longText": _text_answered,
    "yesNo": _yes_no_answered,
    "yesNoWithDetail": _yes_no_with_detail_answered,
    "roleChoice": _role_choice_answered,
    "checkboxSet": _options_answered,
    "multiSelect": _options_answered,
    "singleChoice": _single_choice_answered,
    "fileUpload": _file_answered,
    "table": _table_answered,
    "assessmentPair": _assessment_pair_answered,
    "choiceWithJustification": _choice_with_justification_answered,
    "checkboxSetWithJustification": _checkbox_set_with_justification_answered,
}

_missing_rules = set(get_args(QuestionType)) - set(COMPLETENESS_RULES)
if _missing_rules:
    raise RuntimeError(f"No completeness rule for question types: {sorted(_missing_rules)}")


def _round_percent(answered: int, total: int) -> int:
    if total <= 0:
        return 0
    # Half-up, matching how percentages are shown to respondents
    return int(math.floor(answered * 100 / total + 0.5))


def is_question_answered(question: Question, answers: Mapping[str, object] | AnswerView) -> bool:
    view = answers if isinstance(answers, AnswerView) else AnswerView(answers)
    return COMPLETENESS_RULES[question.type](question, view)


def _section_counts(
    section: Section,
    view: AnswerView,
    *,
    exclude_types: frozenset[str] = frozenset(),
) -> tuple[int, int]:
    """Return (answered, total) for the section's questions."""
    questions = [q for q in section.questions if q.type not in exclude_types]
    answered = sum(1 for q in questions if COMPLETENESS_RULES[q.type](q, view))
    return answered, len(questions)


def section_progress(
    section_id: str,
    answers: Mapping[str, object] | None,
    form: FormDefinition,
) -> int:
    """Percentage (0-100) of answered questions in one form section.

    Unknown sections, document sections and empty sections report 0.
    """
    section = form.get_section(section_id)
    if section is None or section.kind != "form":
        return 0
    return _round_percent(*_section_counts(section, AnswerView(answers)))


def progress_by_section(
    answers: Mapping[str, object] | None,
    form: FormDefinition,
) -> dict[str, int]:
    return {s.id: section_progress(s.id, answers, form) for s in form.form_sections}


def overall_progress(answers: Mapping[str, object] | None, form: FormDefinition) -> int:
    """Unweighted mean of every form section's progress, rounded."""
    per_section = progress_by_section(answers, form)
    if not per_section:
        return 0
    return int(math.floor(sum(per_section.values()) / len(per_section) + 0.5))


@dataclass(frozen=True)
class SubmitReadiness:
    ready: bool
    progress: int
    incomplete_sections: dict[str, int] = field(default_factory=dict)


def submit_readiness(
    answers: Mapping[str, object] | None,
    form: FormDefinition,
) -> SubmitReadiness:
    """Whether the respondent has completed everything they can complete.

    Assessor-gated questions are left out of this gate; they still count in
    the progress shown to users. Sections made only of such questions are
    skipped.
    """
    view = AnswerView(answers)
    scores: dict[str, int] = {}
    incomplete: dict[str, int] = {}
    for section in form.form_sections:
        answered, total = _section_counts(section, view, exclude_types=ASSESSOR_GATED_TYPES)
        if not total:
            continue
        scores[section.id] = _round_percent(answered, total)
        # Rounded percentages can reach 100 with a question still open
        if answered < total:
            incomplete[section.id] = scores[section.id]
    if not scores:
        return SubmitReadiness(ready=True, progress=100)
    progress = int(math.floor(sum(scores.values()) / len(scores) + 0.5))
    return SubmitReadiness(ready=not incomplete, progress=progress, incomplete_sections=incomplete)
