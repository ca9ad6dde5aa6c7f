"""Shipped audit questionnaires, as raw definition data."""

from auditflow.form_definitions.car import CAR_DEFINITION
from auditflow.form_definitions.dpia import DPIA_DEFINITION
from auditflow.form_definitions.dpo import DPO_DEFINITION
from auditflow.form_definitions.lia import LIA_DEFINITION

RAW_DEFINITIONS: list[dict] = [CAR_DEFINITION, DPIA_DEFINITION, DPO_DEFINITION, LIA_DEFINITION]

__all__ = ["CAR_DEFINITION", "DPIA_DEFINITION", "DPO_DEFINITION", "LIA_DEFINITION", "RAW_DEFINITIONS"]
