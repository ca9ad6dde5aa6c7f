"""Data Privacy Impact Assessment (DPIA) questionnaire.

Most sections close with an assessment pair: the organisation states the
material facts and the auditor records an assessment beside them.
"""

ASSESSMENT_GUIDANCE = (
    "State whether the information available is adequate, give succinct reasons, "
    "and rate it on a scale of 1 to 10 against what is reasonably required."
)


def _long_text(question_id: str, text: str) -> dict:
    return {"id": question_id, "text": text, "type": "longText"}


def _assessment(question_id: str, text: str, what_to_note: str) -> dict:
    return {
        "id": question_id,
        "text": text,
        "type": "assessmentPair",
        "what_to_note": what_to_note,
        "assessment_guidance": ASSESSMENT_GUIDANCE,
    }


DPIA_DEFINITION: dict = {
    "id": "dpia",
    "name": "Data Privacy Impact Assessment",
    "short_name": "DPIA",
    "category": "audit",
    "version": "1",
    "features": {"has_reports": False, "has_certificate": False, "has_scoring": False},
    "sections": [
        {"id": "summary", "title": "Summary", "kind": "document"},
        {
            "id": "general_background",
            "title": "GENERAL BACKGROUND",
            "kind": "form",
            "questions": [
                _assessment(
                    "gb_1",
                    "General Background - Material Information",
                    "Highlight the central work of the organisation and the major reasons for carrying out a DPIA.",
                ),
            ],
        },
        {
            "id": "nature_of_processing",
            "title": "NATURE OF ENVISAGED (OR ONGOING) PROCESSING",
            "kind": "form",
            "questions": [
                _long_text("nop_1", "Will data be processed automatically or manually?"),
                _long_text("nop_2", "What specific types of data will be processed?"),
                _long_text("nop_3", "Who will this data be about?"),
                _assessment("nop_assessment", "Nature of Processing - Assessment", "Evaluate the processing scope."),
            ],
        },
        {
            "id": "risk_assessment",
            "title": "RISK ASSESSMENT",
            "kind": "form",
            "questions": [
                {
                    "id": "risk_degree",
                    "text": "Degree of risk and potential harm to data subjects.",
                    "type": "choiceWithJustification",
                    "requires_justification": True,
                    "options": [
                        {"id": "risk_remote", "label": "REMOTE"},
                        {"id": "risk_possible", "label": "POSSIBLE"},
                        {"id": "risk_probable", "label": "PROBABLE"},
                    ],
                },
                {
                    "id": "risk_severity",
                    "text": "Severity of harm to data subjects.",
                    "type": "choiceWithJustification",
                    "requires_justification": True,
                    "options": [
                        {"id": "severity_marginal", "label": "MARGINAL OR LOW"},
                        {"id": "severity_significant", "label": "SIGNIFICANT OR MODERATE"},
                        {"id": "severity_grave", "label": "GRAVE OR EXTREME"},
                    ],
                },
            ],
        },
        {
            "id": "cross_border_transfer",
            "title": "CROSS-BORDER DATA TRANSFER",
            "kind": "form",
            "questions": [
                {
                    "id": "cbt_1",
                    "text": "Will personal data be transferred outside the country?",
                    "type": "yesNoWithDetail",
                    "conditional_reveal": [
                        {"trigger_value": "yes", "label": "Name the destination countries:", "kind": "longText"}
                    ],
                },
                _assessment("cbt_assessment", "Cross-Border Transfer - Assessment", "Evaluate transfer safeguards."),
            ],
        },
        {
            "id": "final_assessment",
            "title": "FINAL ASSESSMENT",
            "kind": "form",
            "questions": [
                {
                    "id": "fa_decision",
                    "text": "Select the facts that best align with your assessment.",
                    "type": "choiceWithJustification",
                    "requires_justification": True,
                    "options": [
                        {"id": "fa_go_ahead", "label": "GO AHEAD"},
                        {"id": "fa_modify", "label": "MODIFY DATA PROCESSING"},
                        {"id": "fa_stop", "label": "STOP DATA PROCESSING"},
                    ],
                },
                {
                    "id": "fa_frequency",
                    "text": "State how frequently the DPIA should be reviewed and give reasons for your choice.",
                    "type": "checkboxSetWithJustification",
                    "requires_justification": True,
                    "options": [
                        {"id": "fa_freq_quarterly", "label": "Quarterly"},
                        {"id": "fa_freq_twice_yearly", "label": "2 Times in a Year"},
                        {"id": "fa_freq_annually", "label": "Annually"},
                        {"id": "fa_freq_lifecycle", "label": "Once in the lifecycle of the Data Processing"},
                    ],
                },
            ],
        },
        {"id": "report", "title": "Report", "kind": "document"},
    ],
}
