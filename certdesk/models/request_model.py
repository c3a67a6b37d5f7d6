"""
models/request_model.py
MongoDB document schema and Pydantic models for certificate requests.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel
from enum import Enum


class RequestStatus(str, Enum):
    PENDING = "pending"
    SIGNED = "signed"
    REJECTED = "rejected"


# Pseudo-status accepted by status filters; matches every request.
STATUS_ALL = "all"


class CertificatePayload(BaseModel):
    """Form data submitted with a request."""
    full_name: str = ""
    national_id: str = ""
    faculty: str = ""
    specialization: str = ""
    study_year: str = ""
    enrollment_mode: str = ""
    funding_type: str = ""
    student_status: str = ""
    purpose_code: str = ""
    other_reason: Optional[str] = None


class CertificateRequest(BaseModel):
    """Full MongoDB document model."""
    request_id: str
    requester_id: str
    requester_email: str = ""
    requester_name: str = ""
    payload: CertificatePayload
    status: RequestStatus = RequestStatus.PENDING
    created_at: datetime
    version: int = 0
    signed_document_ref: Optional[str] = None
    signed_at: Optional[datetime] = None
    signed_by_name: Optional[str] = None

    class Config:
        use_enum_values = True

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "requester_id": self.requester_id,
            "requester_email": self.requester_email,
            "requester_name": self.requester_name,
            "payload": self.payload.model_dump(),
            "status": self.status,
            "created_at": self.created_at,
            "version": self.version,
            "signed_document_ref": self.signed_document_ref,
            "signed_at": self.signed_at,
            "signed_by_name": self.signed_by_name,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "CertificateRequest":
        """Build a model from a raw MongoDB document, ignoring ``_id``."""
        return cls(**{k: v for k, v in doc.items() if k != "_id"})


class SigningResult(BaseModel):
    """Successful answer of the signing service."""
    message: str = ""
    url: str


class SignRequestBody(BaseModel):
    """Request body for the sign endpoint."""
    template: Optional[str] = None


class TemplateFile(BaseModel):
    """An uploaded signing template."""
    name: str
    size: int = 0
    uploaded_at: Optional[datetime] = None


class TemplateSelection(BaseModel):
    """Request body for selecting the signing template."""
    template: Optional[str] = None
