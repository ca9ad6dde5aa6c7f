"""Form definition catalog endpoints."""

from fastapi import APIRouter, HTTPException

from auditflow.core.exceptions import FormDefinitionNotFound
from auditflow.schemas.forms import FormDefinition, FormDefinitionSummary
from auditflow.services import form_definition_service

router = APIRouter(prefix="/forms", tags=["forms"])


@router.get("", response_model=list[FormDefinitionSummary])
def list_forms():
    return [
        form_definition_service.summarize(definition)
        for definition in form_definition_service.list_form_definitions()
    ]


@router.get("/{form_id}", response_model=FormDefinition)
def get_form(form_id: str):
    try:
        return form_definition_service.get_form_definition(form_id)
    except FormDefinitionNotFound as exc:
        raise HTTPException(status_code=404, detail="Form not found") from exc
