"""Pydantic schemas for account creation request endpoints."""

from __future__ import annotations
import uuid
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ALLOWED_MEDIA_TYPES = {"image/jpeg", "image/jpg", "image/png", "application/pdf"}


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AccountType(str, Enum):
    STANDARD = "Standard"
    PRO = "Pro"


class DepositMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CRYPTO = "crypto"
    CREDIT_CARD = "credit_card"


class DocumentType(str, Enum):
    ID_CARD = "id_card"
    PASSPORT = "passport"
    PROOF_OF_DEPOSIT = "proof_of_deposit"


class DocumentInfo(BaseModel):
    """Document metadata without the inline payload."""
    type: DocumentType
    file_name: str
    file_type: str
    file_size: int = Field(..., ge=0)
    uploaded_at: datetime


class DocumentRecord(DocumentInfo):
    """Document as submitted: metadata plus a base64 data URL."""
    url: str

    @field_validator("file_type")
    @classmethod
    def _allowed_type(cls, v: str) -> str:
        if v.lower() not in ALLOWED_MEDIA_TYPES:
            raise ValueError("file_type must be JPG, PNG or PDF")
        return v.lower()

    @model_validator(mode="after")
    def _url_matches_type(self) -> "DocumentRecord":
        if not self.url.startswith(f"data:{self.file_type};base64,"):
            raise ValueError("url must be a base64 data URL tagged with file_type")
        return self


class BankDetails(BaseModel):
    """Bank name, holder, currency and country plus the country-specific fields (iban, clabe…)."""
    model_config = ConfigDict(extra="allow")

    bank_name: str = Field(..., min_length=1)
    account_holder_name: str = Field(..., min_length=1)
    currency: str = Field(..., min_length=3, max_length=3)
    country: str = Field(..., min_length=1)


class AccountRequestCreate(BaseModel):
    """Schema for submitting an onboarding request from the bot."""
    applicant_name: str = Field(..., min_length=1, max_length=255)
    applicant_email: str = Field(..., min_length=3, max_length=255)
    applicant_phone: str | None = None
    applicant_country: str = Field(..., min_length=1)
    applicant_city: str = Field(..., min_length=1)
    requested_by: str = Field(..., min_length=1)
    requested_by_name: str
    status: RequestStatus = RequestStatus.PENDING
    initial_deposit: float = Field(..., ge=1000)
    account_type: AccountType = AccountType.STANDARD
    deposit_method: DepositMethod = DepositMethod.BANK_TRANSFER
    selected_crypto: str | None = None
    bank_details: BankDetails
    identity_document: DocumentRecord
    proof_of_deposit: DocumentRecord
    agreement_accepted: bool
    agreement_accepted_at: datetime

    @field_validator("status")
    @classmethod
    def _must_be_pending(cls, v: RequestStatus) -> RequestStatus:
        if v != RequestStatus.PENDING:
            raise ValueError("new requests must be pending")
        return v

    @field_validator("agreement_accepted")
    @classmethod
    def _must_accept(cls, v: bool) -> bool:
        if not v:
            raise ValueError("agreement must be accepted")
        return v

    @model_validator(mode="after")
    def _document_slots(self) -> "AccountRequestCreate":
        if self.identity_document.type not in (DocumentType.ID_CARD, DocumentType.PASSPORT):
            raise ValueError("identity_document must be an id_card or passport")
        if self.proof_of_deposit.type != DocumentType.PROOF_OF_DEPOSIT:
            raise ValueError("proof_of_deposit must be a proof_of_deposit document")
        return self


class AccountRequestCreated(BaseModel):
    id: uuid.UUID
    status: str


class AccountRequestResponse(BaseModel):
    """Schema for returning a request (document payloads are served separately)."""
    id: uuid.UUID
    applicant_name: str
    applicant_email: str
    applicant_phone: str | None
    applicant_country: str
    applicant_city: str
    requested_by: str
    requested_by_name: str
    status: str
    initial_deposit: float
    account_type: str
    deposit_method: str
    selected_crypto: str | None
    bank_details: dict
    identity_document: DocumentInfo
    proof_of_deposit: DocumentInfo
    agreement_accepted_at: datetime
    review_note: str | None
    reviewed_by: str | None
    reviewed_at: datetime | None
    investor_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReviewAction(BaseModel):
    """Governor decision on a pending request."""
    action: str = Field(..., pattern="^(APPROVE|REJECT)$")
    review_note: str | None = None
    reviewed_by: str = "governor"
