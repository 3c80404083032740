from pydantic import BaseModel, Field
from typing import List, Optional, Mapping, Any
from pathlib import Path
from enum import Enum


class FileRole(str, Enum):
    """Role of an uploaded file, keyed by the multipart field it came from"""
    PHOTO = "photo"
    CV = "cv"
    CERTIFICATE = "certificate"


# Multipart field name -> role
FILE_FIELDS = {
    "photo": FileRole.PHOTO,
    "cv": FileRole.CV,
    "certificats": FileRole.CERTIFICATE,
}


class ApplicationSubmission(BaseModel):
    """Applicant fields of one form submission. Form names are the French ones."""
    last_name: str = Field(default="", alias="nom")
    first_name: str = Field(default="", alias="prenom")
    nationality: str = Field(default="", alias="nationalite")
    marital_status: str = Field(default="", alias="situation_matrimoniale")
    age: str = Field(default="", alias="age")
    phone: str = Field(default="", alias="telephone")
    target_role: str = Field(default="", alias="metier")

    class Config:
        populate_by_name = True

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "ApplicationSubmission":
        """Build a submission from multipart form data, ignoring file parts"""
        values = {}
        for name, field in cls.model_fields.items():
            value = form.get(field.alias)
            if isinstance(value, str):
                values[field.alias] = value
        return cls(**values)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class UploadedFile(BaseModel):
    """One received file stored in the temporary upload directory"""
    role: FileRole
    original_filename: str
    path: Path
    content_type: str
    size: int = 0


class Attachment(BaseModel):
    filename: str
    content: bytes
    content_id: Optional[str] = None


class NotificationEmail(BaseModel):
    sender: str
    recipient: str
    subject: str
    html: str
    attachments: List[Attachment] = []


class MailError(BaseModel):
    """Structured error reported by a mail provider"""
    name: str = "application_error"
    message: str
    status_code: Optional[int] = None


class SendResult(BaseModel):
    """Result of one send call: a provider id on success, an error otherwise"""
    id: Optional[str] = None
    error: Optional[MailError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ApplicationResponse(BaseModel):
    """Envelope returned on every terminal path of the submission endpoint"""
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str = "OK"
    message: str = "Serveur en ligne"
