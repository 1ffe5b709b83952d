"""AccountCreationRequest ORM model — investor onboarding submissions awaiting Governor review."""

import uuid
from datetime import datetime
from sqlalchemy import String, Numeric, Boolean, DateTime, ForeignKey, Text, JSON, Enum as PgEnum
from sqlalchemy.orm import Mapped, mapped_column
from db.database import Base


class AccountCreationRequest(Base):
    __tablename__ = "account_creation_requests"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    applicant_name: Mapped[str] = mapped_column(String(255), nullable=False)
    applicant_email: Mapped[str] = mapped_column(String(255), nullable=False)
    applicant_phone: Mapped[str | None] = mapped_column(String(30))
    applicant_country: Mapped[str] = mapped_column(String(100), nullable=False)
    applicant_city: Mapped[str] = mapped_column(String(100), nullable=False)
    requested_by: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    requested_by_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        PgEnum("pending", "approved", "rejected", name="account_request_status", create_type=False),
        default="pending",
    )
    initial_deposit: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False)
    account_type: Mapped[str] = mapped_column(String(20), default="Standard")
    deposit_method: Mapped[str] = mapped_column(String(20), default="bank_transfer")
    selected_crypto: Mapped[str | None] = mapped_column(String(10))
    bank_details: Mapped[dict] = mapped_column(JSON, nullable=False)
    # Documents are stored inline as {type, file_name, file_type, file_size, url, uploaded_at}
    identity_document: Mapped[dict] = mapped_column(JSON, nullable=False)
    proof_of_deposit: Mapped[dict] = mapped_column(JSON, nullable=False)
    agreement_accepted: Mapped[bool] = mapped_column(Boolean, default=False)
    agreement_accepted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    review_note: Mapped[str | None] = mapped_column(Text)
    reviewed_by: Mapped[str | None] = mapped_column(String(100))
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    investor_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("investors.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)
