# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, SessionLocal, engine, get_db
from .enums import (
    AssignmentMode,
    DocumentsStatus,
    EligibilityCategory,
    LeadStatus,
    LenderGroup,
    OwnerRole,
    ProbabilityBand,
    ProcessPhase,
    PropertyVerificationStatus,
    Relationship,
    UserRole,
)
from .models import (
    CoApplicant,
    Lead,
    LeadStatusHistory,
    Lender,
    LenderRecommendation,
    Student,
    University,
)

__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "get_db",
    "__version__",
    # Enums
    "AssignmentMode",
    "DocumentsStatus",
    "EligibilityCategory",
    "LeadStatus",
    "LenderGroup",
    "OwnerRole",
    "ProbabilityBand",
    "ProcessPhase",
    "PropertyVerificationStatus",
    "Relationship",
    "UserRole",
    # Models
    "CoApplicant",
    "Lead",
    "LeadStatusHistory",
    "Lender",
    "LenderRecommendation",
    "Student",
    "University",
]
