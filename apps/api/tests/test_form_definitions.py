"""Tests for form definition parsing, validation and the shipped catalog."""

import copy

import pytest

from auditflow.core.exceptions import ConfigurationError, FormDefinitionNotFound
from auditflow.form_definitions import CAR_DEFINITION, RAW_DEFINITIONS
from auditflow.services import form_definition_service


def _raw(*questions: dict, extra_sections: list[dict] | None = None) -> dict:
    return {
        "id": "sample",
        "name": "Sample",
        "sections": [
            {"id": "main", "title": "Main", "kind": "form", "questions": list(questions)},
            *(extra_sections or []),
        ],
    }


def _options(*ids: str) -> list[dict]:
    return [{"id": option_id, "label": option_id} for option_id in ids]


# =============================================================================
# Shipped catalog
# =============================================================================


def test_shipped_definitions_load():
    registry = form_definition_service.load_form_definitions()

    assert set(registry) == {"car", "dpia", "dpo", "lia"}
    assert registry["dpo"].features.has_scoring is True
    assert registry["car"].features.has_scoring is False


def test_get_form_definition_unknown_id():
    with pytest.raises(FormDefinitionNotFound):
        form_definition_service.get_form_definition("nope")


def test_list_form_definitions_matches_raw_catalog():
    ids = [d.id for d in form_definition_service.list_form_definitions()]

    assert ids == [raw["id"] for raw in RAW_DEFINITIONS]


def test_summarize_copies_catalog_fields():
    definition = form_definition_service.get_form_definition("car")
    summary = form_definition_service.summarize(definition)

    assert summary.id == "car"
    assert summary.short_name == "CAR"
    assert summary.category == "compliance"
    assert summary.features.has_certificate is True


def test_lia_is_free_text_purpose_and_necessity_tests():
    definition = form_definition_service.get_form_definition("lia")

    assert [s.id for s in definition.form_sections] == ["part1_purpose_test", "part2_necessity_test"]
    purpose, necessity = definition.form_sections
    assert [q.id for q in purpose.questions] == [f"pt_q{i}" for i in range(1, 13)]
    assert [q.id for q in necessity.questions] == [f"nt_q{i}" for i in range(1, 5)]
    assert {q.type for q in purpose.questions + necessity.questions} == {"longText"}
    assert necessity.questions[3].reference == "PART 2 - Question 4"
    assert definition.features.has_reports is False
    assert definition.features.has_certificate is False


def test_field_keys_include_derived_keys():
    definition = form_definition_service.get_form_definition("car")
    keys = form_definition_service.field_keys(definition)

    assert "pp_1" in keys
    assert "pp_1_detail" in keys
    assert "lb_consent" in keys
    assert "ds_2_iso27000" in keys
    assert "ds_3_cis" in keys
    # document sections contribute nothing
    assert "summary" not in keys


def test_field_keys_for_tables_and_assessments():
    dpo = form_definition_service.get_form_definition("dpo")
    dpia = form_definition_service.get_form_definition("dpia")

    assert "section5_q2_row0_col_title" in form_definition_service.field_keys(dpo)
    assert "section5_q2_row3_col_evidence" in form_definition_service.field_keys(dpo)
    assert "gb_1_material" in form_definition_service.field_keys(dpia)
    assert "gb_1_assessment" in form_definition_service.field_keys(dpia)
    assert "risk_degree_risk_remote_justification" in form_definition_service.field_keys(dpia)


def test_section_and_question_for_field():
    definition = form_definition_service.get_form_definition("car")

    assert form_definition_service.section_for_field(definition, "ds_2_cis").id == "data_security"
    assert form_definition_service.section_for_field(definition, "pp_1_detail").id == "people_process"
    assert form_definition_service.section_for_field(definition, "unknown") is None
    assert form_definition_service.question_for_field(definition, "lb_legal").id == "lb_1"


def test_shipped_definitions_are_not_mutated_by_parsing():
    before = copy.deepcopy(CAR_DEFINITION)

    form_definition_service.parse_form_definition(CAR_DEFINITION)

    assert CAR_DEFINITION == before


# =============================================================================
# Configuration errors
# =============================================================================


def test_dangling_single_choice_trigger_is_rejected():
    raw = _raw(
        {
            "id": "sc",
            "text": "Pick",
            "type": "singleChoice",
            "options": _options("sc_a", "sc_b"),
            "conditional_reveal": [{"trigger_value": "sc_z", "label": "Explain"}],
        }
    )

    with pytest.raises(ConfigurationError, match="sc_z"):
        form_definition_service.parse_form_definition(raw)


def test_yes_no_trigger_must_be_yes_or_no():
    raw = _raw(
        {
            "id": "reg",
            "text": "Registered?",
            "type": "yesNoWithDetail",
            "conditional_reveal": [{"trigger_value": "maybe", "label": "Explain"}],
        }
    )

    with pytest.raises(ConfigurationError, match="maybe"):
        form_definition_service.parse_form_definition(raw)


def test_duplicate_trigger_is_rejected():
    raw = _raw(
        {
            "id": "sc",
            "text": "Pick",
            "type": "singleChoice",
            "options": _options("sc_a", "sc_b"),
            "conditional_reveal": [
                {"trigger_value": "sc_a", "label": "One"},
                {"trigger_value": "sc_a", "label": "Two"},
            ],
        }
    )

    with pytest.raises(ConfigurationError, match="duplicate"):
        form_definition_service.parse_form_definition(raw)


def test_reveal_on_unsupported_type_is_rejected():
    raw = _raw(
        {
            "id": "plain",
            "text": "Plain",
            "type": "yesNo",
            "conditional_reveal": [{"trigger_value": "yes", "label": "Why"}],
        }
    )

    with pytest.raises(ConfigurationError, match="cannot reveal"):
        form_definition_service.parse_form_definition(raw)


def test_detail_follow_up_must_be_text():
    raw = _raw(
        {
            "id": "reg",
            "text": "Registered?",
            "type": "yesNoWithDetail",
            "conditional_reveal": [
                {"trigger_value": "yes", "kind": "multiSelect", "options": _options("reg_x")}
            ],
        }
    )

    with pytest.raises(ConfigurationError, match="must be text"):
        form_definition_service.parse_form_definition(raw)


def test_multiselect_follow_up_needs_options():
    raw = _raw(
        {
            "id": "sc",
            "text": "Pick",
            "type": "singleChoice",
            "options": _options("sc_a"),
            "conditional_reveal": [{"trigger_value": "sc_a", "kind": "multiSelect"}],
        }
    )

    with pytest.raises(ConfigurationError, match="no options"):
        form_definition_service.parse_form_definition(raw)


@pytest.mark.parametrize("question_type", ["checkboxSet", "multiSelect", "singleChoice", "choiceWithJustification"])
def test_option_types_need_options(question_type):
    raw = _raw({"id": "q", "text": "Q", "type": question_type})

    with pytest.raises(ConfigurationError, match="no options"):
        form_definition_service.parse_form_definition(raw)


def test_table_needs_columns():
    raw = _raw({"id": "t", "text": "Table", "type": "table"})

    with pytest.raises(ConfigurationError, match="no columns"):
        form_definition_service.parse_form_definition(raw)


def test_document_section_cannot_carry_questions():
    raw = _raw(
        {"id": "q", "text": "Q", "type": "text"},
        extra_sections=[
            {
                "id": "summary",
                "title": "Summary",
                "kind": "document",
                "questions": [{"id": "stray", "text": "Stray", "type": "text"}],
            }
        ],
    )

    with pytest.raises(ConfigurationError, match="document sections"):
        form_definition_service.parse_form_definition(raw)


def test_option_id_colliding_with_question_id_is_rejected():
    raw = _raw(
        {"id": "consent", "text": "Consent given?", "type": "yesNo"},
        {"id": "bases", "text": "Bases", "type": "multiSelect", "options": _options("consent", "contract")},
    )

    with pytest.raises(ConfigurationError, match="collide"):
        form_definition_service.parse_form_definition(raw)


def test_derived_key_collision_is_rejected():
    raw = _raw(
        {
            "id": "reg",
            "text": "Registered?",
            "type": "yesNoWithDetail",
            "conditional_reveal": [{"trigger_value": "yes", "label": "Number"}],
        },
        {"id": "reg_detail", "text": "Shadow", "type": "text"},
    )

    with pytest.raises(ConfigurationError, match="reg_detail"):
        form_definition_service.parse_form_definition(raw)


def test_duplicate_section_ids_are_rejected():
    raw = _raw(
        {"id": "q", "text": "Q", "type": "text"},
        extra_sections=[{"id": "main", "title": "Again", "kind": "form", "questions": []}],
    )

    with pytest.raises(ConfigurationError, match="duplicate section"):
        form_definition_service.parse_form_definition(raw)


def test_schema_errors_become_configuration_errors():
    raw = _raw({"id": "q", "text": "Q", "type": "dropdown"})

    with pytest.raises(ConfigurationError, match="sample"):
        form_definition_service.parse_form_definition(raw)


def test_duplicate_form_ids_are_rejected():
    raw = _raw({"id": "q", "text": "Q", "type": "text"})

    try:
        with pytest.raises(ConfigurationError, match="Duplicate form definition"):
            form_definition_service.load_form_definitions([raw, copy.deepcopy(raw)])
    finally:
        form_definition_service.load_form_definitions()
