"""DPO Credential Assessment questionnaire. Auditors score each section."""

from auditflow.form_definitions.car import UPLOAD_PLACEHOLDER

DPO_DEFINITION: dict = {
    "id": "dpo",
    "name": "DPO Credential Assessment",
    "short_name": "DPO",
    "description": "Assessment of a Data Protection Officer's credentials and continuing development.",
    "category": "assessment",
    "version": "1",
    "features": {"has_scoring": True},
    "sections": [
        {"id": "summary", "title": "Summary", "kind": "document"},
        {
            "id": "section1_accreditation",
            "title": "SECTION 1: Accreditation of Issuing Body",
            "short_title": "Accreditation of Issuing Body",
            "kind": "form",
            "questions": [
                {
                    "id": "section1_q1",
                    "text": (
                        "Is the organisation that issued your DPO certificate an accredited "
                        "educational or training institution?"
                    ),
                    "type": "yesNoWithDetail",
                    "conditional_reveal": [
                        {
                            "trigger_value": "yes",
                            "label": "Provide the name of the accrediting regulator:",
                            "placeholder": "Enter accrediting regulator name",
                        }
                    ],
                },
                {
                    "id": "section1_q2",
                    "text": "Provide evidence of accreditation or regulatory approval for the issuing institution.",
                    "type": "fileUpload",
                    "placeholder": UPLOAD_PLACEHOLDER,
                },
                {
                    "id": "section1_q3",
                    "text": "Does the certificate clearly state the name of the issuing accredited body?",
                    "type": "yesNo",
                },
            ],
        },
        {
            "id": "section2_training",
            "title": "SECTION 2: Training Hours Verification",
            "short_title": "Training Hours Verification",
            "kind": "form",
            "questions": [
                {
                    "id": "section2_q1",
                    "text": "How many instructional hours did your DPO training cover?",
                    "type": "singleChoice",
                    "options": [
                        {"id": "section2_q1_a", "label": "Less than 40 hours"},
                        {"id": "section2_q1_b", "label": "Exactly 40 hours"},
                        {"id": "section2_q1_c", "label": "More than 40 hours"},
                    ],
                    "conditional_reveal": [
                        {"trigger_value": "section2_q1_a", "label": "State total hours:"},
                        {"trigger_value": "section2_q1_c", "label": "State total hours:"},
                    ],
                },
                {
                    "id": "section2_q2",
                    "text": "Provide the official training schedule or programme outline.",
                    "type": "fileUpload",
                    "placeholder": UPLOAD_PLACEHOLDER,
                },
            ],
        },
        {
            "id": "section3_examination",
            "title": "SECTION 3: Examination Requirement",
            "short_title": "Examination Requirement",
            "kind": "form",
            "questions": [
                {
                    "id": "section3_q1",
                    "text": "Was an examination a mandatory requirement for obtaining your DPO certificate?",
                    "type": "yesNo",
                },
                {
                    "id": "section3_q2",
                    "text": "What type of examination was conducted?",
                    "type": "checkboxSet",
                    "options": [
                        {"id": "section3_q2_a", "label": "Written"},
                        {"id": "section3_q2_b", "label": "Computer-based/online"},
                        {"id": "section3_q2_c", "label": "Oral interview"},
                        {"id": "section3_q2_d", "label": "Practical assessment"},
                    ],
                },
            ],
        },
        {
            "id": "section5_cpd",
            "title": "SECTION 5: Continuous Professional Development",
            "short_title": "CPD",
            "kind": "form",
            "questions": [
                {
                    "id": "section5_q1",
                    "text": (
                        "Have you participated in at least four recognised CPD programmes "
                        "within the last year?"
                    ),
                    "type": "yesNo",
                },
                {
                    "id": "section5_q2",
                    "text": "List the CPD activities attended:",
                    "type": "table",
                    "table_rows": 4,
                    "table_columns": [
                        {"id": "col_sn", "label": "S/N", "placeholder": "Auto"},
                        {"id": "col_title", "label": "CPD Programme Title"},
                        {"id": "col_date", "label": "Date Attended", "placeholder": "DD/MM/YYYY"},
                        {"id": "col_body", "label": "Organising Body"},
                        {"id": "col_evidence", "label": "Evidence Attached", "kind": "checkbox"},
                    ],
                },
            ],
        },
        {
            "id": "section6_validation",
            "title": "SECTION 6: Additional Professional Validation",
            "short_title": "Additional Professional Validation",
            "kind": "form",
            "questions": [
                {
                    "id": "section6_q2",
                    "text": "List any additional data protection or cybersecurity certifications you hold.",
                    "type": "text",
                },
                {
                    "id": "section6_q3",
                    "text": "Describe how you keep up to date with data protection regulations and practice.",
                    "type": "longText",
                },
            ],
        },
        {"id": "scores", "title": "Assessment Scores", "short_title": "Scores", "kind": "document"},
    ],
}
