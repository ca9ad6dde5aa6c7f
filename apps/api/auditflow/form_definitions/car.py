"""Compliance Audit Returns (CAR) questionnaire."""

UPLOAD_PLACEHOLDER = "Upload/Attach documentation (PDF, Image, etc.)"


def _text(question_id: str, text: str) -> dict:
    return {"id": question_id, "text": text, "type": "text"}


def _yes_no(question_id: str, text: str, reference: str | None = None) -> dict:
    return {"id": question_id, "text": text, "type": "yesNo", "reference": reference}


def _yes_no_detail(question_id: str, text: str, label: str, reference: str | None = None) -> dict:
    return {
        "id": question_id,
        "text": text,
        "type": "yesNoWithDetail",
        "reference": reference,
        "conditional_reveal": [{"trigger_value": "yes", "label": label, "kind": "text"}],
    }


def _checklist(question_id: str, text: str, labels: list[str], reference: str | None = None) -> dict:
    return {
        "id": question_id,
        "text": text,
        "type": "multiSelect",
        "reference": reference,
        "options": [
            {"id": f"{question_id}_{chr(ord('a') + i)}", "label": label}
            for i, label in enumerate(labels)
        ],
    }


def _upload(question_id: str, text: str) -> dict:
    return {"id": question_id, "text": text, "type": "fileUpload", "placeholder": UPLOAD_PLACEHOLDER}


SECURITY_STANDARDS = [
    ("iso27000", "ISO 27000 series"),
    ("nist800", "NIST Special Publications 800 series"),
    ("nist_csf", "NIST Cybersecurity Framework CSF"),
    ("cis", "Centre for Internet Security (CIS) Critical Security Controls"),
    ("cobit", "COBIT"),
    ("hitrust", "HITRUST Common Security Framework"),
]


CAR_DEFINITION: dict = {
    "id": "car",
    "name": "Compliance Audit Returns",
    "short_name": "CAR",
    "description": "Annual data protection compliance audit return.",
    "category": "compliance",
    "version": "1",
    "features": {"has_reports": True, "has_certificate": True},
    "sections": [
        {"id": "summary", "title": "Summary", "kind": "document"},
        {
            "id": "corporate_info",
            "title": "Corporate Information",
            "kind": "form",
            "questions": [
                _text("org_name", "Name of Organisation"),
                _text("address", "Address"),
                _text("phone", "Phone"),
                _text("email", "Email"),
                _text("dpo_name", "DPO's Name"),
                _text("dpo_email", "DPO's Email"),
                _text("estimated_data_subjects", "Estimated Number of Data Subjects"),
                _text("sector", "Sector"),
            ],
        },
        {
            "id": "people_process",
            "title": "PART 1: People & Process (Governance)",
            "short_title": "People & Process",
            "kind": "form",
            "questions": [
                _yes_no_detail(
                    "pp_1",
                    "Is the organisation currently registered with the regulator for data processing?",
                    "Provide registration number:",
                    "S.44 Art. 9",
                ),
                _yes_no(
                    "pp_2",
                    "Is there a designated Data Protection Officer (DPO) for the organisation?",
                    "S.32 Art. 11",
                ),
                {
                    "id": "pp_3",
                    "text": "Is the DPO a member of staff or a consultant?",
                    "type": "roleChoice",
                    "reference": "S.32",
                },
                _yes_no("pp_4", "Is the DPO trained in data privacy and protection?", "S.32 Art. 12(2) (c)"),
                _yes_no_detail(
                    "pp_5",
                    "Is the DPO certified by a duly accredited certification body for data protection?",
                    "Provide accreditation number:",
                    "S.32 Art 14",
                ),
                _yes_no_detail(
                    "pp_7",
                    "Did the DPO obtain the required CPD credit within 12 months?",
                    "Provide CPD credit:",
                    "S.32 Art. 4(8)",
                ),
                _yes_no(
                    "pp_8",
                    "Does the organisation have a schedule for capacity building on data protection for all employees?",
                    "S.24 (2)(3) Art. 30",
                ),
                _checklist(
                    "pp_12",
                    "Select the facts that describe the organisation's people and process practices.",
                    [
                        "Data protection responsibilities are documented for every role.",
                        "At least one procedure in the organisation may not safeguard data subject's rights.",
                        "The process for obtaining informed consent needs more improvement.",
                        "Changes to the privacy policy are not clearly communicated to all data subjects.",
                    ],
                ),
            ],
        },
        {
            "id": "lawful_bases",
            "title": "PART 1(C): Lawful Bases For Processing",
            "short_title": "Lawful Bases",
            "kind": "form",
            "questions": [
                {
                    "id": "lb_1",
                    "text": "Which lawful bases does the organisation rely on?",
                    "type": "multiSelect",
                    "options": [
                        {"id": "lb_consent", "label": "Consent"},
                        {"id": "lb_legal", "label": "Legal Obligation"},
                        {"id": "lb_contract", "label": "Contract"},
                        {"id": "lb_vital", "label": "Vital Interest"},
                        {"id": "lb_public", "label": "Public Interest"},
                        {"id": "lb_legitimate", "label": "Legitimate Interest"},
                    ],
                },
            ],
        },
        {
            "id": "data_security",
            "title": "PART 2: Technology - Data Security",
            "short_title": "Data Security",
            "kind": "form",
            "questions": [
                {
                    "id": "ds_1",
                    "text": (
                        "Select the type of facts that describe the organisation's practices in respect "
                        "of data security."
                    ),
                    "type": "singleChoice",
                    "reference": "S.39",
                    "options": [
                        {"id": "ds_1_a", "label": "Poor"},
                        {"id": "ds_1_b", "label": "Average"},
                        {"id": "ds_1_c", "label": "Above Average"},
                        {"id": "ds_1_d", "label": "Close to Industry Grade"},
                        {"id": "ds_1_e", "label": "Industry Grade"},
                    ],
                    "conditional_reveal": [
                        {
                            "trigger_value": "ds_1_d",
                            "label": "Select the standards the organisation implements:",
                            "kind": "multiSelect",
                            "options": [
                                {"id": f"ds_2_{key}", "label": label} for key, label in SECURITY_STANDARDS
                            ],
                        },
                        {
                            "trigger_value": "ds_1_e",
                            "label": "Select the standards the organisation implements:",
                            "kind": "multiSelect",
                            "options": [
                                {"id": f"ds_3_{key}", "label": label} for key, label in SECURITY_STANDARDS
                            ],
                        },
                    ],
                },
            ],
        },
        {
            "id": "accountability_record",
            "title": "PART 3: Accountability & Record of Processing",
            "short_title": "Record of Processing",
            "kind": "form",
            "questions": [
                _yes_no(
                    "arp_1",
                    "Does the DPO prepare a Semi-Annual Data Protection Report (SAPR)?",
                    "Art. 13",
                ),
                _yes_no(
                    "arp_3",
                    "Does the DPO submit their report directly to management at least once in six months?",
                    "Art. 13(2)",
                ),
            ],
        },
        {
            "id": "cross_border",
            "title": "PART 4: Cross-Border Data Transfer",
            "short_title": "Cross-Border Data Transfer",
            "kind": "form",
            "questions": [
                _yes_no("cb_1", "Does the organisation engage in cross-border data transfer?", "S.41, 43"),
                _yes_no("cb_2", "Are cross-border data transfers documented and assessed for compliance?"),
            ],
        },
        {
            "id": "data_processors",
            "title": "PART 5: Data Processors",
            "short_title": "Data Processors",
            "kind": "form",
            "questions": [
                _yes_no("dp_1", "Does your organisation use data processors in carrying out its activities?", "S.29"),
                _checklist(
                    "dp_4",
                    "After termination of a data processing agreement, the organisation ensures:",
                    [
                        "Data deletion (with confirmation of deletion).",
                        "Data return.",
                        "Anonymisation of data.",
                        "Revocation of access to systems and data.",
                    ],
                ),
            ],
        },
        {
            "id": "document_upload",
            "title": "Document Upload",
            "kind": "form",
            "questions": [
                _upload("doc_privacy_policy", "Privacy Policy"),
                _upload("doc_info_security", "Information Security Policy"),
                _upload("doc_data_retention", "Data Retention Schedule and Policy"),
                _upload("doc_processing_records", "Records of Processing Activities"),
            ],
        },
        {"id": "report", "title": "Report", "kind": "document"},
        {"id": "certificate", "title": "Certificate", "kind": "document"},
    ],
}
