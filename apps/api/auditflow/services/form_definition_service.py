"""Form definition registry and configuration checks.

Definitions are plain data in ``auditflow.form_definitions``. They are parsed
and validated once, then shared read-only by every request.
"""

from __future__ import annotations

import logging
from collections import Counter

from pydantic import ValidationError

from auditflow.core.exceptions import ConfigurationError, FormDefinitionNotFound
from auditflow.form_definitions import RAW_DEFINITIONS
from auditflow.schemas.forms import (
    OPTION_BEARING_TYPES,
    SINGLE_CHOICE_TYPES,
    YES_NO_VALUES,
    FormDefinition,
    FormDefinitionSummary,
    Question,
    Section,
)
from auditflow.services.answer_keys import iter_question_keys, stores_own_value

logger = logging.getLogger(__name__)

# Question types that may reveal a follow-up field
REVEAL_TYPES: frozenset[str] = frozenset({"yesNoWithDetail", "singleChoice"})
OPTION_REQUIRED_TYPES: frozenset[str] = OPTION_BEARING_TYPES | SINGLE_CHOICE_TYPES

_registry: dict[str, FormDefinition] | None = None
_field_keys: dict[str, frozenset[str]] = {}


def _question_keys(question: Question) -> list[str]:
    keys = list(iter_question_keys(question))
    if not stores_own_value(question):
        # Flags can still target the question as a whole
        keys.insert(0, question.id)
    return keys


def _validate_question(form_id: str, question: Question) -> None:
    where = f"{form_id}.{question.id}"

    if question.type in OPTION_REQUIRED_TYPES and not question.options:
        raise ConfigurationError(f"{where}: '{question.type}' question has no options")
    if question.type == "table" and not question.table_columns:
        raise ConfigurationError(f"{where}: table question has no columns")

    if not question.conditional_reveal:
        return
    if question.type not in REVEAL_TYPES:
        raise ConfigurationError(f"{where}: '{question.type}' questions cannot reveal follow-up fields")

    if question.type == "yesNoWithDetail":
        valid_triggers = set(YES_NO_VALUES)
    else:
        valid_triggers = set(question.option_ids())

    seen: set[str] = set()
    for rule in question.conditional_reveal:
        if rule.trigger_value not in valid_triggers:
            raise ConfigurationError(
                f"{where}: reveal trigger '{rule.trigger_value}' is not a value this question can take"
            )
        if rule.trigger_value in seen:
            raise ConfigurationError(f"{where}: duplicate reveal trigger '{rule.trigger_value}'")
        seen.add(rule.trigger_value)
        if rule.kind == "multiSelect":
            if question.type == "yesNoWithDetail":
                raise ConfigurationError(f"{where}: detail follow-ups must be text")
            if not rule.options:
                raise ConfigurationError(f"{where}: multiSelect follow-up has no options")


def _validate_section(form_id: str, section: Section) -> None:
    if section.kind == "document" and section.questions:
        raise ConfigurationError(f"{form_id}.{section.id}: document sections cannot carry questions")
    for question in section.questions:
        _validate_question(form_id, question)


def validate_form_definition(definition: FormDefinition) -> None:
    """Raise ConfigurationError when a definition cannot be answered consistently.

    Besides per-question checks, every key in the flat answer map (question
    ids, option ids and derived keys) must be unique across the form.
    """
    section_ids = Counter(s.id for s in definition.sections)
    duplicate_sections = sorted(sid for sid, count in section_ids.items() if count > 1)
    if duplicate_sections:
        raise ConfigurationError(f"{definition.id}: duplicate section ids {duplicate_sections}")

    keys: Counter[str] = Counter()
    for section in definition.sections:
        _validate_section(definition.id, section)
        for question in section.questions:
            keys.update(_question_keys(question))

    collisions = sorted(key for key, count in keys.items() if count > 1)
    if collisions:
        raise ConfigurationError(f"{definition.id}: answer keys collide: {collisions}")


def parse_form_definition(raw: dict) -> FormDefinition:
    """Build and validate a definition from raw data."""
    try:
        definition = FormDefinition.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid form definition '{raw.get('id')}': {exc}") from exc
    validate_form_definition(definition)
    return definition


def load_form_definitions(raw_definitions: list[dict] | None = None) -> dict[str, FormDefinition]:
    """Parse and validate every shipped definition and install the registry."""
    global _registry

    registry: dict[str, FormDefinition] = {}
    field_keys_by_form: dict[str, frozenset[str]] = {}
    for raw in raw_definitions if raw_definitions is not None else RAW_DEFINITIONS:
        definition = parse_form_definition(raw)
        if definition.id in registry:
            raise ConfigurationError(f"Duplicate form definition id '{definition.id}'")
        registry[definition.id] = definition
        field_keys_by_form[definition.id] = _compute_field_keys(definition)

    _registry = registry
    _field_keys.clear()
    _field_keys.update(field_keys_by_form)
    logger.info("Loaded %d form definitions", len(registry))
    return registry


def _get_registry() -> dict[str, FormDefinition]:
    if _registry is None:
        return load_form_definitions()
    return _registry


def get_form_definition(form_id: str) -> FormDefinition:
    definition = _get_registry().get(form_id)
    if definition is None:
        raise FormDefinitionNotFound(f"Form definition '{form_id}' not found")
    return definition


def list_form_definitions() -> list[FormDefinition]:
    return list(_get_registry().values())


def summarize(definition: FormDefinition) -> FormDefinitionSummary:
    return FormDefinitionSummary(
        id=definition.id,
        name=definition.name,
        short_name=definition.short_name,
        category=definition.category,
        version=definition.version,
        features=definition.features,
    )


def _compute_field_keys(definition: FormDefinition) -> frozenset[str]:
    keys: set[str] = set()
    for section in definition.form_sections:
        for question in section.questions:
            keys.update(_question_keys(question))
    return frozenset(keys)


def field_keys(definition: FormDefinition) -> frozenset[str]:
    """Every key a submission of this form may address (answers and flags)."""
    cached = _field_keys.get(definition.id)
    if cached is not None and _registry is not None and _registry.get(definition.id) is definition:
        return cached
    return _compute_field_keys(definition)


def section_for_field(definition: FormDefinition, field_id: str) -> Section | None:
    for section in definition.form_sections:
        for question in section.questions:
            if field_id in _question_keys(question):
                return section
    return None


def question_for_field(definition: FormDefinition, field_id: str) -> Question | None:
    for section in definition.form_sections:
        for question in section.questions:
            if field_id in _question_keys(question):
                return question
    return None
