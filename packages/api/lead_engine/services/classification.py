# This project was developed with assistance from AI tools.
"""AI-assisted document type detection for uploads.

Each file runs its own small state machine::

    pending -> classifying -> classified | needs_manual_type | error
    (any)   -> removed

Only images are sent to the vision model. PDFs and other formats go straight
to manual type selection. A failed, slow, or low-confidence classification
never auto-accepts or auto-rejects a document; it asks a human to pick the
type.
"""

import asyncio
import base64
import json
import logging
import re

from pydantic import ValidationError

from ..core.config import settings
from ..inference.client import get_completion
from ..schemas.classification import (
    ClassificationResult,
    DocumentOwner,
    FileClassification,
    FileState,
    UploadedFile,
)
from ..schemas.error import EngineError, ErrorCode, ErrorKind

logger = logging.getLogger(__name__)

# Category key -> label, and the document types the classifier may return.
DOCUMENT_CATEGORIES: dict[str, str] = {
    "student": "Student KYC",
    "academic": "Academic Records",
    "admission": "Admission",
    "co_applicant": "Co-Applicant KYC & Income",
    "collateral": "Collateral",
}

DOCUMENT_TYPES: dict[str, tuple[str, str]] = {
    "pan_card": ("PAN Card", "student"),
    "aadhaar_card": ("Aadhaar Card", "student"),
    "passport": ("Passport", "student"),
    "photograph": ("Photograph", "student"),
    "marksheet_10th": ("10th Marksheet", "academic"),
    "marksheet_12th": ("12th Marksheet", "academic"),
    "degree_certificate": ("Degree Certificate", "academic"),
    "transcript": ("Transcript", "academic"),
    "test_score_report": ("Test Score Report (GRE/GMAT/IELTS/TOEFL)", "academic"),
    "admission_letter": ("Admission Letter", "admission"),
    "i20_cas": ("I-20 / CAS", "admission"),
    "salary_slip": ("Salary Slip", "co_applicant"),
    "bank_statement": ("Bank Statement", "co_applicant"),
    "itr": ("Income Tax Return", "co_applicant"),
    "form_16": ("Form 16", "co_applicant"),
    "property_document": ("Property Document", "collateral"),
}

# Matches ```json ... ``` or ``` ... ``` fences that LLMs often wrap around JSON.
_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def _strip_json_fences(text: str) -> str:
    """Remove markdown code fences wrapping JSON output."""
    stripped = text.strip()
    m = _FENCE_RE.match(stripped)
    return m.group(1).strip() if m else stripped


def _build_prompt() -> dict[str, str]:
    types = "\n".join(
        f"- {key}: {label} (category: {category})"
        for key, (label, category) in DOCUMENT_TYPES.items()
    )
    return {
        "role": "system",
        "content": (
            "You classify documents uploaded for an Indian education loan application.\n"
            "Known document types:\n"
            f"{types}\n\n"
            "Respond with a single JSON object with keys: detected_type (one of the "
            "keys above or 'unknown'), detected_owner (student | co_applicant | "
            "collateral | unknown), confidence (0-100), quality (good | acceptable | "
            "poor | unreadable), is_document (bool), red_flags (list of strings), "
            "notes (string). Do not add any other text."
        ),
    }


def _pdf_result() -> ClassificationResult:
    return ClassificationResult(
        detected_type_label="PDF Document",
        notes="PDF files require manual classification",
    )


def _unsupported_result() -> ClassificationResult:
    return ClassificationResult(
        detected_type_label="Unknown File",
        is_document=False,
        red_flags=["unsupported_format"],
        notes="Unsupported file format",
    )


def _parse_result(raw: str) -> ClassificationResult:
    """Build a result from model output, filling labels from the type table.

    Raises ValueError (JSONDecodeError, ValidationError) on malformed output.
    """
    data = json.loads(_strip_json_fences(raw))
    if not isinstance(data, dict):
        raise ValueError("Classifier output is not a JSON object")

    detected_type = data.get("detected_type") or "unknown"
    label, category = DOCUMENT_TYPES.get(detected_type, ("Unknown Document", "student"))
    if detected_type not in DOCUMENT_TYPES:
        detected_type = "unknown"

    owner = data.get("detected_owner", DocumentOwner.UNKNOWN.value)
    if owner not in {o.value for o in DocumentOwner}:
        owner = DocumentOwner.UNKNOWN.value

    return ClassificationResult.model_validate(
        {
            **data,
            "detected_type": detected_type,
            "detected_type_label": label,
            "detected_category": category,
            "detected_category_label": DOCUMENT_CATEGORIES[category],
            "detected_owner": owner,
        }
    )


async def _classify_image(upload: UploadedFile) -> ClassificationResult:
    b64 = base64.b64encode(upload.data).decode("ascii")
    messages = [
        _build_prompt(),
        {
            "role": "user",
            "content": [
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{upload.content_type};base64,{b64}"},
                },
                {"type": "text", "text": "Classify this document."},
            ],
        },
    ]
    raw = await get_completion(messages)
    return _parse_result(raw)


def _unavailable(file_state: FileClassification, message: str) -> FileClassification:
    return file_state.model_copy(
        update={
            "state": FileState.NEEDS_MANUAL_TYPE,
            "error": EngineError(
                kind=ErrorKind.EXTERNAL_SERVICE,
                code=ErrorCode.CLASSIFICATION_UNAVAILABLE,
                message=message,
            ),
        }
    )


async def classify_file(
    upload: UploadedFile,
    *,
    timeout: float | None = None,
    min_confidence: int | None = None,
) -> FileClassification:
    """Classify one file and return its final state.

    Never raises for classifier failures; they degrade to manual type selection.
    """
    if timeout is None:
        timeout = settings.CLASSIFICATION_TIMEOUT_SECONDS
    if min_confidence is None:
        min_confidence = settings.CLASSIFICATION_MIN_CONFIDENCE

    state = FileClassification(file_id=upload.file_id, filename=upload.filename)

    if upload.content_type == "application/pdf":
        return state.model_copy(
            update={"state": FileState.NEEDS_MANUAL_TYPE, "result": _pdf_result()}
        )
    if not upload.content_type.startswith("image/"):
        return state.model_copy(
            update={"state": FileState.NEEDS_MANUAL_TYPE, "result": _unsupported_result()}
        )

    state = state.model_copy(update={"state": FileState.CLASSIFYING})
    try:
        result = await asyncio.wait_for(_classify_image(upload), timeout=timeout)
    except TimeoutError:
        logger.warning("Classification timed out for %s after %.1fs", upload.filename, timeout)
        return _unavailable(state, "Document classification timed out. Select the type manually.")
    except (ValueError, ValidationError):
        logger.warning("Classifier returned unusable output for %s", upload.filename)
        return _unavailable(
            state, "Document classification returned an unreadable answer. Select the type manually."
        )
    except Exception:
        logger.exception("Classification failed for %s", upload.filename)
        return _unavailable(
            state, "Document classification is unavailable. Select the type manually."
        )

    if result.detected_type == "unknown" or result.confidence < min_confidence:
        logger.info(
            "Low-confidence classification for %s: %s (%d)",
            upload.filename,
            result.detected_type,
            result.confidence,
        )
        return state.model_copy(update={"state": FileState.NEEDS_MANUAL_TYPE, "result": result})

    return state.model_copy(update={"state": FileState.CLASSIFIED, "result": result})


async def classify_files(uploads: list[UploadedFile]) -> list[FileClassification]:
    """Classify all files concurrently; one slow or failing file never blocks others."""
    return list(await asyncio.gather(*(classify_file(u) for u in uploads)))


def remove(file_state: FileClassification) -> FileClassification:
    """Mark a file as abandoned by the caller."""
    return file_state.model_copy(update={"state": FileState.REMOVED})
