"""
services/validation.py
Field-completeness validation for submitted certificate payloads, and
name checks for signing templates.
"""
from typing import List

from certdesk.core.config import settings
from certdesk.core.errors import InvalidTemplateError, ValidationError
from certdesk.models.request_model import CertificatePayload

REQUIRED_FIELDS = (
    "full_name",
    "national_id",
    "faculty",
    "specialization",
    "study_year",
    "enrollment_mode",
    "funding_type",
    "student_status",
    "purpose_code",
)


def missing_fields(payload: CertificatePayload) -> List[str]:
    """Names of required fields that are empty after trimming."""
    missing = [
        field for field in REQUIRED_FIELDS
        if not (getattr(payload, field) or "").strip()
    ]
    if payload.purpose_code.strip() == settings.OTHER_PURPOSE_CODE:
        if not (payload.other_reason or "").strip():
            missing.append("other_reason")
    return missing


def validate_payload(payload: CertificatePayload) -> CertificatePayload:
    """
    Check that every required field is filled in and return a trimmed copy.

    The free-text reason is kept only when the purpose is "other".

    Raises:
        ValidationError: listing every missing field
    """
    missing = missing_fields(payload)
    if missing:
        raise ValidationError(missing)

    cleaned = {field: getattr(payload, field).strip() for field in REQUIRED_FIELDS}
    if cleaned["purpose_code"] == settings.OTHER_PURPOSE_CODE:
        cleaned["other_reason"] = payload.other_reason.strip()
    return CertificatePayload(**cleaned)


def check_template_name(name: str) -> str:
    """
    Return the trimmed template file name.

    Names are plain file names inside the templates folder: no path
    separators and no leading dot.

    Raises:
        InvalidTemplateError: empty name, or one that would leave the folder
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidTemplateError("Template name is required.")
    if "/" in cleaned or "\\" in cleaned or cleaned.startswith("."):
        raise InvalidTemplateError(f"Invalid template name '{cleaned}'.")
    return cleaned
