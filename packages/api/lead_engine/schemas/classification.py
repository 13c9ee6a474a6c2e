# This project was developed with assistance from AI tools.
"""Document classification schemas."""

import enum

from pydantic import BaseModel, Field

from .error import EngineError


class FileState(str, enum.Enum):
    PENDING = "pending"
    CLASSIFYING = "classifying"
    CLASSIFIED = "classified"
    NEEDS_MANUAL_TYPE = "needs_manual_type"
    ERROR = "error"
    REMOVED = "removed"


class DocumentQuality(str, enum.Enum):
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    POOR = "poor"
    UNREADABLE = "unreadable"


class DocumentOwner(str, enum.Enum):
    STUDENT = "student"
    CO_APPLICANT = "co_applicant"
    COLLATERAL = "collateral"
    UNKNOWN = "unknown"


class ClassificationResult(BaseModel):
    """Structured output of the external classifier."""

    detected_type: str = "unknown"
    detected_type_label: str = "Unknown Document"
    detected_category: str = "student"
    detected_category_label: str = "Student KYC"
    detected_owner: DocumentOwner = DocumentOwner.UNKNOWN
    confidence: int = Field(default=0, ge=0, le=100)
    quality: DocumentQuality = DocumentQuality.ACCEPTABLE
    is_document: bool = True
    red_flags: list[str] = Field(default_factory=list)
    notes: str = ""


class UploadedFile(BaseModel):
    """A file queued for classification."""

    file_id: str
    filename: str
    content_type: str
    data: bytes = Field(repr=False)


class FileClassification(BaseModel):
    """Per-file classification state."""

    file_id: str
    filename: str
    state: FileState = FileState.PENDING
    result: ClassificationResult | None = None
    error: EngineError | None = None

    @property
    def needs_manual_type(self) -> bool:
        return self.state in (FileState.NEEDS_MANUAL_TYPE, FileState.ERROR)
