"""Schemas for audit form definitions and submissions."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


QuestionType = Literal[
    "text",
    "longText",
    "yesNo",
    "yesNoWithDetail",
    "roleChoice",
    "checkboxSet",
    "multiSelect",
    "singleChoice",
    "fileUpload",
    "table",
    "assessmentPair",
    "choiceWithJustification",
    "checkboxSetWithJustification",
]

# Question types whose answers are stored per option id
OPTION_BEARING_TYPES: frozenset[str] = frozenset(
    {"checkboxSet", "multiSelect", "checkboxSetWithJustification"}
)
# Question types whose answer is one selected option id
SINGLE_CHOICE_TYPES: frozenset[str] = frozenset({"singleChoice", "choiceWithJustification"})

YES_NO_VALUES: tuple[str, str] = ("yes", "no")
ROLE_CHOICE_VALUES: tuple[str, str] = ("staff", "consultant")

ROW_INDEX_COLUMN_ID = "col_sn"
DEFAULT_TABLE_ROWS = 4


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class QuestionOption(_Frozen):
    id: str = Field(..., min_length=1, max_length=100)
    label: str
    description: str | None = None


TableColumnKind = Literal["text", "checkbox"]


class TableColumn(_Frozen):
    id: str = Field(..., min_length=1, max_length=100)
    label: str
    kind: TableColumnKind = "text"
    placeholder: str | None = None

    @property
    def is_row_index(self) -> bool:
        return self.id == ROW_INDEX_COLUMN_ID


RevealKind = Literal["text", "longText", "multiSelect"]


class ConditionalReveal(_Frozen):
    """Follow-up shown when the parent question's answer equals trigger_value."""

    trigger_value: str = Field(..., min_length=1)
    label: str | None = None
    kind: RevealKind = "text"
    options: list[QuestionOption] | None = None
    placeholder: str | None = None
    reference: str | None = None


class Question(_Frozen):
    id: str = Field(..., min_length=1, max_length=100)
    text: str
    type: QuestionType
    options: list[QuestionOption] | None = None
    table_columns: list[TableColumn] | None = None
    table_rows: int = Field(DEFAULT_TABLE_ROWS, ge=1, le=100)
    conditional_reveal: list[ConditionalReveal] = Field(default_factory=list)
    requires_justification: bool = False

    # Presentation-only
    reference: str | None = None
    placeholder: str | None = None
    what_to_note: str | None = None
    assessment_guidance: str | None = None

    def option_ids(self) -> list[str]:
        return [o.id for o in self.options or []]

    def reveal_for(self, value: object) -> ConditionalReveal | None:
        if value is None:
            return None
        for rule in self.conditional_reveal:
            if rule.trigger_value == value:
                return rule
        return None


SectionKind = Literal["document", "form"]


class Section(_Frozen):
    id: str = Field(..., min_length=1, max_length=100)
    title: str
    short_title: str | None = None
    kind: SectionKind
    questions: list[Question] = Field(default_factory=list)


FormCategoryLiteral = Literal["compliance", "assessment", "audit"]


class FormFeatures(_Frozen):
    has_reports: bool = False
    has_certificate: bool = False
    has_scoring: bool = False


class FormDefinition(_Frozen):
    id: str = Field(..., min_length=1, max_length=50)
    name: str
    short_name: str | None = None
    description: str | None = None
    category: FormCategoryLiteral = "compliance"
    version: str = "1"
    features: FormFeatures = Field(default_factory=FormFeatures)
    sections: list[Section]

    def get_section(self, section_id: str) -> Section | None:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    @property
    def form_sections(self) -> list[Section]:
        return [s for s in self.sections if s.kind == "form"]


class FormDefinitionSummary(BaseModel):
    id: str
    name: str
    short_name: str | None
    category: str
    version: str
    features: FormFeatures


# =============================================================================
# Submissions
# =============================================================================


class SubmissionCreate(BaseModel):
    form_id: str = Field(..., min_length=1, max_length=50)
    owner_id: str = Field(..., min_length=1, max_length=255)
    owner_name: str | None = Field(None, max_length=255)
    owner_email: str | None = Field(None, max_length=320)
    assigned_auditor_id: str | None = Field(None, max_length=255)
    assigned_auditor_name: str | None = Field(None, max_length=255)
    assigned_auditor_email: str | None = Field(None, max_length=320)


class SubmissionAnswersUpdate(BaseModel):
    """Batch of field-level writes; a None value removes the key."""

    answers: dict[str, object]


class FlagFieldRequest(BaseModel):
    field_id: str = Field(..., min_length=1, max_length=200)
    comments: list[str] = Field(default_factory=list)


class ClearFlagRequest(BaseModel):
    field_id: str = Field(..., min_length=1, max_length=200)
    comment: str | None = None


class ClearSectionFlagsRequest(BaseModel):
    section_id: str = Field(..., min_length=1, max_length=100)


class CommentCreate(BaseModel):
    field_id: str | None = Field(None, max_length=200)
    text: str = Field(..., min_length=1)


class MarkReviewedRequest(BaseModel):
    comments: list[str] = Field(default_factory=list)


class ClearSubmissionRequest(BaseModel):
    certificate_ref: str | None = Field(None, max_length=1000)


class ReportCreate(BaseModel):
    """A report document already stored by the file collaborator."""

    name: str = Field(..., min_length=1, max_length=255)
    ref: str = Field(..., min_length=1, max_length=1000)
    content_type: str | None = Field(None, max_length=255)
    size: int | None = Field(None, ge=0)


class ReportRead(BaseModel):
    id: str
    name: str
    ref: str
    content_type: str | None = None
    size: int | None = None
    uploaded_by: str
    uploaded_at: datetime


class SectionScoreUpdate(BaseModel):
    section_id: str = Field(..., min_length=1, max_length=100)
    score: float = Field(..., ge=0, le=100)
    comments: str | None = None


class SectionScoreRead(BaseModel):
    section_id: str
    section_title: str
    score: float
    max_score: float = 100
    comments: str | None = None
    scored_by: str | None = None
    scored_at: datetime | None = None


class AuditorReviewRead(BaseModel):
    id: int
    author_name: str
    author_avatar_ref: str | None
    timestamp: datetime
    section_id: str | None
    field_id: str | None
    comments: list[str]


class SubmissionProgressRead(BaseModel):
    overall: int
    sections: dict[str, int]
    ready_to_submit: bool
    incomplete_sections: dict[str, int]


class SubmissionRead(BaseModel):
    id: UUID
    form_id: str
    form_version: str
    owner_id: str
    status: str
    answers: dict[str, object]
    flagged_fields: list[str]
    total_flags: int
    cleared_flags: int
    section_scores: list[SectionScoreRead] | None
    total_score: float | None
    score_grade: str | None
    reports: list[ReportRead]
    certificate_ref: str | None
    progress: SubmissionProgressRead
    reviews: list[AuditorReviewRead]
    created_at: datetime
    updated_at: datetime
    submitted_at: datetime | None
    last_reviewed_at: datetime | None
    approved_at: datetime | None
    cleared_at: datetime | None


class SubmissionSummary(BaseModel):
    id: UUID
    form_id: str
    owner_id: str
    status: str
    progress: int
    total_flags: int
    submitted_at: datetime | None
    updated_at: datetime
