"""Legitimate Interest Assessment (LIA) questionnaire. Free-text answers only."""


def _question(part: int, number: int, text: str, placeholder: str) -> dict:
    prefix = "pt" if part == 1 else "nt"
    return {
        "id": f"{prefix}_q{number}",
        "text": text,
        "type": "longText",
        "reference": f"PART {part} - Question {number}",
        "placeholder": placeholder,
    }


PURPOSE_TEST = [
    (
        "Why do you want to process the data?",
        "Describe the purpose of data processing...",
    ),
    (
        "What benefit do you expect to get from the processing?",
        "Explain the expected benefits...",
    ),
    (
        "Do any third parties benefit from the processing?",
        "Describe third-party benefits if applicable...",
    ),
    (
        "Are there any wider public benefits to the processing?",
        "Explain any public benefits...",
    ),
    (
        "How important are the benefits that you have identified?",
        "Assess the importance of identified benefits...",
    ),
    (
        "What would the impact be if you couldn't go ahead with the processing?",
        "Describe the impact if processing cannot proceed...",
    ),
    (
        "Are you complying with any specific data protection rules that apply to your "
        "processing (e.g. profiling requirements)?",
        "List applicable data protection rules...",
    ),
    (
        "Are you complying with other relevant laws?",
        "Describe compliance with other laws...",
    ),
    (
        "Are you complying with industry guidelines or codes of practice?",
        "List applicable guidelines or codes...",
    ),
    (
        "Are there any other ethical issues with the processing?",
        "Describe any ethical concerns...",
    ),
    (
        "Will the processing involve the personal data of a child in any way?",
        "Describe any involvement of children's data...",
    ),
    (
        "Do you have an effective means of carrying out age verification?",
        "Describe your age verification methods...",
    ),
]

NECESSITY_TEST = [
    (
        "Will this processing actually help you achieve your purpose?",
        "Explain how processing helps achieve the purpose...",
    ),
    (
        "Is the processing proportionate to that purpose?",
        "Justify the proportionality of the processing...",
    ),
    (
        "Can you achieve the same purpose without the processing?",
        "Describe alternative approaches...",
    ),
    (
        "Can you achieve the same purpose by processing less data, or by processing the "
        "data in another more obvious or less intrusive way?",
        "Explain data minimisation and alternative approaches...",
    ),
]


LIA_DEFINITION: dict = {
    "id": "lia",
    "name": "Legitimate Interest Assessment",
    "short_name": "LIA",
    "description": "NDP Act-GAID legitimate interest assessment template.",
    "category": "audit",
    "version": "1",
    "features": {"has_reports": False, "has_certificate": False, "has_scoring": False},
    "sections": [
        {"id": "summary", "title": "Summary", "kind": "document"},
        {
            "id": "part1_purpose_test",
            "title": "Legitimate Interest Assessment - Part 1: Purpose Test",
            "short_title": "Part 1: Purpose Test",
            "kind": "form",
            "questions": [
                _question(1, number, text, placeholder)
                for number, (text, placeholder) in enumerate(PURPOSE_TEST, start=1)
            ],
        },
        {
            "id": "part2_necessity_test",
            "title": "Legitimate Interest Assessment - Part 2: Necessity Test",
            "short_title": "Part 2: Necessity Test",
            "kind": "form",
            "questions": [
                _question(2, number, text, placeholder)
                for number, (text, placeholder) in enumerate(NECESSITY_TEST, start=1)
            ],
        },
        {"id": "report", "title": "Report", "kind": "document"},
    ],
}
