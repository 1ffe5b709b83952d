"""
Investor Onboarding Wizard — 5-step linear state machine.

Steps:
  1. Personal Information → 2. Financial Details → 3. Banking Information
  → 4. Identity Verification → 5. Agreement & Submission

Forward moves are gated by a per-step validation predicate; backward moves
are always allowed. Submission re-checks every step, assembles the account
creation request and hands it to the request store for Governor review.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from onboarding.banking import (
    ACCOUNT_HOLDER_FIELD,
    DEFAULT_COUNTRY,
    get_profile,
    currency_for,
)
from onboarding.documents import (
    MAX_FILE_SIZE,
    AttachedDocument,
    DocumentSlot,
    DocumentType,
    IDENTITY_TYPES,
    UploadedFile,
    build_document,
)
from onboarding.errors import (
    BusyError,
    OnboardingError,
    PreconditionError,
    SubmissionError,
    ValidationError,
)
from onboarding.store import RequestStore

logger = logging.getLogger(__name__)

MIN_STEP = 1
MAX_STEP = 5
MINIMUM_DEPOSIT = 1000.0
SUCCESS_CALLBACK_DELAY = 3.0  # seconds the success screen stays up

STEP_TITLES = {
    1: "Personal Information",
    2: "Financial Details",
    3: "Banking Information",
    4: "Identity Verification",
    5: "Agreement & Submission",
}


class AccountType(str, Enum):
    STANDARD = "Standard"
    PRO = "Pro"


class DepositMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CRYPTO = "crypto"
    CREDIT_CARD = "credit_card"


class CryptoAsset(str, Enum):
    BTC = "BTC"
    ETH = "ETH"
    USDT = "USDT"


# ── State ──────────────────────────────────────────────────

@dataclass
class PersonalInfo:
    name: str = ""
    email: str = ""
    phone: str = ""
    country: str = DEFAULT_COUNTRY.value
    city: str = ""


@dataclass
class FinancialInfo:
    initial_deposit: str = ""
    account_type: AccountType = AccountType.STANDARD


@dataclass
class BankingInfo:
    selected_bank: str = ""
    fields: dict[str, str] = field(default_factory=dict)


@dataclass
class VerificationInfo:
    id_type: DocumentType = DocumentType.ID_CARD
    deposit_method: DepositMethod = DepositMethod.BANK_TRANSFER
    selected_crypto: CryptoAsset = CryptoAsset.BTC


@dataclass
class WizardState:
    step: int = MIN_STEP
    personal: PersonalInfo = field(default_factory=PersonalInfo)
    financial: FinancialInfo = field(default_factory=FinancialInfo)
    banking: BankingInfo = field(default_factory=BankingInfo)
    verification: VerificationInfo = field(default_factory=VerificationInfo)
    documents: dict[DocumentSlot, AttachedDocument] = field(default_factory=dict)
    agreement_accepted: bool = False
    error: str = ""
    is_busy: bool = False
    is_success: bool = False
    request_id: str | None = None


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing the onboarding (stamped on the request)."""
    id: str
    name: str


# ── Pure helpers ───────────────────────────────────────────

def clamp_step(step: int) -> int:
    return max(MIN_STEP, min(step, MAX_STEP))


def parse_deposit(value: str | None) -> float | None:
    """Parse the deposit field; None when it is blank or not a finite number."""
    if value is None or not str(value).strip():
        return None
    try:
        amount = float(str(value).strip().replace(",", ""))
    except ValueError:
        return None
    if not math.isfinite(amount):
        return None
    return amount


def effective_bank_fields(state: WizardState) -> dict[str, str]:
    """Bank field values with the account holder defaulted to the personal name."""
    values = dict(state.banking.fields)
    if not (values.get(ACCOUNT_HOLDER_FIELD) or "").strip():
        values[ACCOUNT_HOLDER_FIELD] = state.personal.name
    return values


# ── Step validation table ──────────────────────────────────

def _personal_complete(state: WizardState) -> bool:
    p = state.personal
    return all(bool(v) for v in (p.name, p.email, p.country, p.city))


def _financial_complete(state: WizardState) -> bool:
    amount = parse_deposit(state.financial.initial_deposit)
    return amount is not None and amount >= MINIMUM_DEPOSIT


def _banking_complete(state: WizardState) -> bool:
    if not state.banking.selected_bank:
        return False
    profile = get_profile(state.personal.country)
    if profile is None:
        return True
    values = state.banking.fields
    return all((values.get(f.name) or "").strip() for f in profile.required_fields)


def _verification_complete(state: WizardState) -> bool:
    return (
        DocumentSlot.IDENTITY in state.documents
        and DocumentSlot.PROOF_OF_DEPOSIT in state.documents
    )


def _agreement_complete(state: WizardState) -> bool:
    return state.agreement_accepted


STEP_VALIDATORS: dict[int, Callable[[WizardState], bool]] = {
    1: _personal_complete,
    2: _financial_complete,
    3: _banking_complete,
    4: _verification_complete,
    5: _agreement_complete,
}


def validate_step(state: WizardState, step: int) -> bool:
    validator = STEP_VALIDATORS.get(step)
    return bool(validator and validator(state))


def build_request(state: WizardState, actor: Actor, now: datetime | None = None) -> dict:
    """Snapshot the wizard into an account creation request payload."""
    now = now or datetime.now(timezone.utc)
    personal = state.personal
    identity = state.documents.get(DocumentSlot.IDENTITY)
    deposit_doc = state.documents.get(DocumentSlot.PROOF_OF_DEPOSIT)
    if identity is None or deposit_doc is None:
        raise PreconditionError("Required documents not found")

    bank_details = {
        "bank_name": state.banking.selected_bank,
        **effective_bank_fields(state),
        "currency": currency_for(personal.country),
        "country": personal.country,
    }

    payload = {
        "applicant_name": personal.name,
        "applicant_email": personal.email,
        "applicant_phone": personal.phone,
        "applicant_country": personal.country,
        "applicant_city": personal.city,
        "requested_by": actor.id,
        "requested_by_name": actor.name,
        "status": "pending",
        "initial_deposit": parse_deposit(state.financial.initial_deposit),
        "account_type": state.financial.account_type.value,
        "deposit_method": state.verification.deposit_method.value,
        "bank_details": bank_details,
        "identity_document": identity.to_dict(),
        "proof_of_deposit": deposit_doc.to_dict(),
        "agreement_accepted": True,
        "agreement_accepted_at": now.isoformat(),
    }
    if state.verification.deposit_method == DepositMethod.CRYPTO:
        payload["selected_crypto"] = state.verification.selected_crypto.value
    return payload


# ── Controller ─────────────────────────────────────────────

class OnboardingWizard:
    """Owns one WizardState and every operation that mutates it."""

    def __init__(
        self,
        store: RequestStore,
        on_success: Callable[[], Any] | None = None,
        on_close: Callable[[], Any] | None = None,
        success_delay: float = SUCCESS_CALLBACK_DELAY,
        max_file_size: int = MAX_FILE_SIZE,
    ):
        self.store = store
        self.on_success = on_success
        self.on_close = on_close
        self.success_delay = success_delay
        self.max_file_size = max_file_size
        self.state = WizardState()
        self.success_task: asyncio.Task | None = None

    @property
    def step(self) -> int:
        return self.state.step

    @property
    def error(self) -> str:
        return self.state.error

    def validate(self, step: int | None = None) -> bool:
        return validate_step(self.state, self.state.step if step is None else step)

    def _fail(self, exc: OnboardingError) -> bool:
        self.state.error = exc.message
        return False

    # ── Navigation ──

    def advance(self) -> bool:
        current = clamp_step(self.state.step)
        self.state.step = current
        if not validate_step(self.state, current):
            return self._fail(ValidationError())
        self.state.step = clamp_step(current + 1)
        self.state.error = ""
        return True

    def retreat(self) -> bool:
        self.state.step = clamp_step(clamp_step(self.state.step) - 1)
        self.state.error = ""
        return True

    def reset(self) -> None:
        task, self.success_task = self.success_task, None
        if task is not None and not task.done():
            task.cancel()
        self.state = WizardState()

    def close(self) -> None:
        self.reset()
        if self.on_close:
            self.on_close()

    # ── Field input ──

    def update_personal(self, **values: str) -> None:
        previous_country = self.state.personal.country
        for name, value in values.items():
            if not hasattr(self.state.personal, name):
                raise AttributeError(f"Unknown personal field: {name}")
            setattr(self.state.personal, name, value.strip() if isinstance(value, str) else value)
        # Bank lists and field sets are per country
        if self.state.personal.country != previous_country:
            self.state.banking = BankingInfo()

    def update_financial(
        self,
        initial_deposit: str | None = None,
        account_type: AccountType | str | None = None,
    ) -> None:
        if initial_deposit is not None:
            self.state.financial.initial_deposit = str(initial_deposit).strip()
        if account_type is not None:
            self.state.financial.account_type = AccountType(account_type)

    def select_bank(self, bank: str) -> None:
        if bank != self.state.banking.selected_bank:
            self.state.banking = BankingInfo(selected_bank=bank)

    def set_bank_field(self, name: str, value: str) -> bool:
        profile = get_profile(self.state.personal.country)
        descriptor = profile.field(name) if profile else None
        if descriptor and descriptor.max_length and len(value) > descriptor.max_length:
            return self._fail(ValidationError(
                f"{descriptor.label} must be at most {descriptor.max_length} characters"
            ))
        self.state.banking.fields[name] = value
        return True

    def set_id_type(self, id_type: DocumentType | str) -> None:
        id_type = DocumentType(id_type)
        if id_type not in IDENTITY_TYPES:
            raise ValueError("Identity type must be id_card or passport")
        self.state.verification.id_type = id_type

    def set_deposit_method(
        self,
        method: DepositMethod | str,
        crypto: CryptoAsset | str | None = None,
    ) -> None:
        self.state.verification.deposit_method = DepositMethod(method)
        if crypto is not None:
            self.state.verification.selected_crypto = CryptoAsset(crypto)

    def accept_agreement(self, accepted: bool = True) -> None:
        self.state.agreement_accepted = accepted

    # ── Documents ──

    def document(self, slot: DocumentSlot) -> AttachedDocument | None:
        return self.state.documents.get(slot)

    async def attach(self, file: UploadedFile, slot: DocumentSlot) -> bool:
        """Encode an upload into `slot`, replacing whatever occupied it."""
        if self.state.is_busy:
            return self._fail(BusyError())

        if slot == DocumentSlot.IDENTITY:
            document_type = self.state.verification.id_type
        else:
            document_type = DocumentType.PROOF_OF_DEPOSIT

        self.state.is_busy = True
        try:
            document = await build_document(file, document_type, self.max_file_size)
        except OnboardingError as e:
            logger.info("Upload rejected: slot=%s, file=%s, reason=%s", slot.value, file.file_name, e.message)
            return self._fail(e)
        except Exception as e:
            logger.error("Upload failed: slot=%s, file=%s, error=%s", slot.value, file.file_name, e)
            return self._fail(ValidationError("Failed to upload file. Please try again."))
        finally:
            self.state.is_busy = False

        self.state.documents[slot] = document
        self.state.error = ""
        logger.info(
            "Document attached: slot=%s, type=%s, file=%s, size=%s",
            slot.value,
            document.document_type.value,
            document.file_name,
            document.file_size,
        )
        return True

    def remove(self, slot: DocumentSlot) -> None:
        self.state.documents.pop(slot, None)

    # ── Submission ──

    def summary(self) -> dict:
        """Review snapshot shown on step 5."""
        s = self.state
        identity = s.documents.get(DocumentSlot.IDENTITY)
        deposit_doc = s.documents.get(DocumentSlot.PROOF_OF_DEPOSIT)
        return {
            "name": s.personal.name,
            "email": s.personal.email,
            "country": s.personal.country,
            "city": s.personal.city,
            "initial_deposit": parse_deposit(s.financial.initial_deposit),
            "account_type": s.financial.account_type.value,
            "bank": s.banking.selected_bank,
            "currency": currency_for(s.personal.country),
            "identity_document": identity.file_name if identity else None,
            "proof_of_deposit": deposit_doc.file_name if deposit_doc else None,
        }

    async def submit(self, actor: Actor | None) -> bool:
        """Send the account creation request. One store call, no retries."""
        if self.state.is_busy:
            return self._fail(BusyError())
        if self.state.is_success:
            return self._fail(PreconditionError("This application has already been submitted"))
        if actor is None or not all(validate_step(self.state, s) for s in STEP_VALIDATORS):
            return self._fail(PreconditionError())

        try:
            payload = build_request(self.state, actor)
        except PreconditionError as e:
            return self._fail(e)

        previous_error = self.state.error
        self.state.is_busy = True
        self.state.error = ""
        try:
            request_id = await self.store.create_onboarding_request(payload)
        except asyncio.CancelledError:
            self.state.error = previous_error
            raise
        except Exception as e:
            logger.error(
                "Account creation request failed: requested_by=%s, error=%s",
                actor.id,
                e,
            )
            return self._fail(SubmissionError())
        finally:
            self.state.is_busy = False

        self.state.is_success = True
        self.state.request_id = request_id
        logger.info(
            "Account creation request submitted: id=%s, applicant=%s, requested_by=%s",
            request_id,
            payload["applicant_name"],
            actor.id,
        )
        if self.on_success:
            self.success_task = asyncio.create_task(self._acknowledge_success())
        return True

    async def _acknowledge_success(self) -> None:
        await asyncio.sleep(self.success_delay)
        # Past this point a reset must not cancel the running acknowledgement
        self.success_task = None
        try:
            result = self.on_success()
            if inspect.isawaitable(result):
                await result
        finally:
            self.reset()
