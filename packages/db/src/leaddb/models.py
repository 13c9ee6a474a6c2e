# This project was developed with assistance from AI tools.
"""
Lead pipeline -- domain models

Education-loan lead lifecycle models covering students, co-applicants,
leads, append-only status history, the lender/university directories,
and AI lender recommendation snapshots.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    AssignmentMode,
    DocumentsStatus,
    LeadStatus,
    PropertyVerificationStatus,
)


class Student(Base):
    """Student applicant profile."""

    __tablename__ = "students"

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=True)
    phone = Column(String(20), nullable=True, index=True)
    email = Column(String(255), nullable=True)
    postal_code = Column(String(10), nullable=True)
    date_of_birth = Column(DateTime(timezone=True), nullable=True)
    gender = Column(String(20), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    nationality = Column(String(100), nullable=True)
    street_address = Column(Text, nullable=True)
    highest_qualification = Column(String(50), nullable=True)
    tenth_percentage = Column(Float, nullable=True)
    twelfth_percentage = Column(Float, nullable=True)
    bachelors_percentage = Column(Float, nullable=True)
    bachelors_cgpa = Column(Float, nullable=True)
    credit_score = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    leads = relationship("Lead", back_populates="student")

    def __repr__(self):
        return f"<Student(id={self.id}, name='{self.name}')>"


class CoApplicant(Base):
    """Co-applicant (usually a parent) backing the loan."""

    __tablename__ = "co_applicants"

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=True)
    relationship_to_student = Column("relationship", String(50), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    salary = Column(Numeric(12, 2), nullable=True)
    pin_code = Column(String(10), nullable=True)
    occupation = Column(String(50), nullable=True)
    employer = Column(String(200), nullable=True)
    employment_type = Column(String(50), nullable=True)
    employment_duration_years = Column(Float, nullable=True)
    credit_score = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<CoApplicant(id={self.id}, name='{self.name}')>"


class Lead(Base):
    """Loan application moving through the 22-step pipeline."""

    __tablename__ = "leads"

    id = Column(String(36), primary_key=True)
    student_id = Column(String(36), ForeignKey("students.id"), nullable=True, index=True)
    co_applicant_id = Column(String(36), ForeignKey("co_applicants.id"), nullable=True)
    partner_id = Column(String(36), nullable=True, index=True)
    lender_id = Column(String(36), ForeignKey("lenders.id"), nullable=True)
    # Plain string so rows holding an unknown status still load
    status = Column(String(40), nullable=False, default=LeadStatus.LEAD_INTAKE.value)
    documents_status = Column(
        Enum(DocumentsStatus, name="documents_status", native_enum=False),
        nullable=False,
        default=DocumentsStatus.PENDING,
    )
    stage_started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    loan_amount = Column(Numeric(14, 2), nullable=True)
    loan_type = Column(String(20), nullable=True)
    study_destination = Column(String(100), nullable=True)
    intake_month = Column(Integer, nullable=True)
    intake_year = Column(Integer, nullable=True)
    # Status companion data
    lan_number = Column(String(100), nullable=True)
    sanction_amount = Column(Numeric(14, 2), nullable=True)
    sanction_date = Column(DateTime(timezone=True), nullable=True)
    pd_call_scheduled_at = Column(DateTime(timezone=True), nullable=True)
    pf_amount = Column(Numeric(12, 2), nullable=True)
    pf_paid_at = Column(DateTime(timezone=True), nullable=True)
    property_verification_status = Column(
        Enum(PropertyVerificationStatus, name="property_verification_status", native_enum=False),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    student = relationship("Student", back_populates="leads")
    co_applicant = relationship("CoApplicant")
    history = relationship(
        "LeadStatusHistory", back_populates="lead", order_by="LeadStatusHistory.id",
    )

    def __repr__(self):
        return f"<Lead(id={self.id}, status='{self.status}', version={self.version})>"


class LeadStatusHistory(Base):
    """Append-only record of every accepted status change."""

    __tablename__ = "lead_status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_id = Column(
        String(36), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    old_status = Column(String(50), nullable=True)
    new_status = Column(String(50), nullable=True)
    old_documents_status = Column(String(50), nullable=True)
    new_documents_status = Column(String(50), nullable=True)
    reason_code = Column(String(50), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    changed_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    lead = relationship("Lead", back_populates="history")

    def __repr__(self):
        return (
            f"<LeadStatusHistory(lead_id={self.lead_id}, "
            f"{self.old_status} -> {self.new_status})>"
        )


class University(Base):
    """University directory entry with a 0-100 quality score."""

    __tablename__ = "universities"

    id = Column(String(36), primary_key=True)
    name = Column(String(300), nullable=False)
    country = Column(String(100), nullable=True, index=True)
    score = Column(Float, nullable=True)
    global_rank = Column(Integer, nullable=True)

    def __repr__(self):
        return f"<University(id={self.id}, name='{self.name}')>"


class Lender(Base):
    """Lender directory entry."""

    __tablename__ = "lenders"

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    interest_rate_min = Column(Float, nullable=True)
    interest_rate_max = Column(Float, nullable=True)
    loan_amount_min = Column(Numeric(14, 2), nullable=True)
    loan_amount_max = Column(Numeric(14, 2), nullable=True)
    preferred_rank = Column(Integer, nullable=True)
    supported_destinations = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<Lender(id={self.id}, code='{self.code}')>"


class LenderRecommendation(Base):
    """Snapshot of AI lender evaluations for a lead plus the human decision.

    The acceptance columns are only written by an explicit accept action.
    """

    __tablename__ = "lender_recommendations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_id = Column(
        String(36), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    evaluations = Column(JSON, nullable=False)
    inputs_snapshot = Column(JSON, nullable=True)
    confidence_score = Column(Integer, nullable=False)
    model_version = Column(String(50), nullable=False)
    accepted_lender_id = Column(String(36), nullable=True)
    assignment_mode = Column(
        Enum(AssignmentMode, name="assignment_mode", native_enum=False),
        nullable=True,
    )
    accepted_by = Column(String(255), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<LenderRecommendation(lead_id={self.lead_id}, "
            f"mode={self.assignment_mode})>"
        )
