"""Tests for the investor onboarding wizard state machine."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "bot"))

import asyncio

import pytest

from onboarding.documents import DocumentSlot, DocumentType, UploadedFile, MAX_FILE_SIZE
from onboarding.errors import SubmissionError
from onboarding.wizard import (
    Actor,
    OnboardingWizard,
    WizardState,
    build_request,
    parse_deposit,
    validate_step,
)

ACTOR = Actor(id="4242", name="Governor Desk")
FRANCE_BANK_FIELDS = {
    "account_holder_name": "Jane Doe",
    "iban": "FR7630006000011234567890189",
    "bic": "BNPAFRPP",
    "address": "1 Rue de Rivoli, Paris",
}


class FakeStore:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    async def create_onboarding_request(self, payload: dict) -> str:
        self.calls.append(payload)
        if self.fail:
            raise SubmissionError()
        return "req-123"


def _png(size: int, name: str = "id.png") -> UploadedFile:
    return UploadedFile.from_bytes(name, "image/png", b"\x89PNG" + b"0" * (size - 4))


def _pdf(size: int, name: str = "deposit.pdf") -> UploadedFile:
    return UploadedFile.from_bytes(name, "application/pdf", b"%PDF" + b"0" * (size - 4))


async def _fill_all_steps(wizard: OnboardingWizard) -> None:
    wizard.update_personal(name="Jane Doe", email="jane@x.com", country="France", city="Paris")
    wizard.update_financial(initial_deposit="5000")
    wizard.select_bank("BNP Paribas")
    for name, value in FRANCE_BANK_FIELDS.items():
        assert wizard.set_bank_field(name, value)
    assert await wizard.attach(_png(2 * 1024 * 1024), DocumentSlot.IDENTITY)
    assert await wizard.attach(_pdf(1024 * 1024), DocumentSlot.PROOF_OF_DEPOSIT)
    wizard.accept_agreement()


# ── Navigation ────────────────────────────────────────────

def test_initial_state():
    wizard = OnboardingWizard(FakeStore())
    assert wizard.step == 1
    assert wizard.state.personal.country == "Mexico"
    assert wizard.state.documents == {}
    assert wizard.error == ""


@pytest.mark.parametrize("step", [1, 2, 3, 4, 5])
def test_advance_rejected_when_step_invalid(step):
    """A fresh wizard fails every predicate: advance must not move."""
    wizard = OnboardingWizard(FakeStore())
    wizard.state.step = step
    assert wizard.advance() is False
    assert wizard.step == step
    assert wizard.error


def test_advance_moves_forward_and_clears_error():
    wizard = OnboardingWizard(FakeStore())
    wizard.advance()
    assert wizard.error

    wizard.update_personal(name="Jane Doe", email="jane@x.com", city="Paris")
    assert wizard.advance() is True
    assert wizard.step == 2
    assert wizard.error == ""


@pytest.mark.asyncio
async def test_advance_from_last_step_stays_on_five():
    wizard = OnboardingWizard(FakeStore())
    await _fill_all_steps(wizard)
    wizard.state.step = 5
    assert wizard.advance() is True
    assert wizard.step == 5


def test_retreat_never_below_first_step():
    wizard = OnboardingWizard(FakeStore())
    wizard.state.error = "stale"
    assert wizard.retreat() is True
    assert wizard.step == 1
    assert wizard.error == ""


@pytest.mark.asyncio
@pytest.mark.parametrize("raw_step", [-3, 0, 6, 42])
async def test_out_of_range_steps_are_clamped(raw_step):
    wizard = OnboardingWizard(FakeStore())
    wizard.state.step = raw_step
    wizard.retreat()
    assert 1 <= wizard.step <= 5

    wizard.state.step = raw_step
    wizard.advance()
    assert 1 <= wizard.step <= 5

    await _fill_all_steps(wizard)
    wizard.state.step = raw_step
    wizard.advance()
    assert 1 <= wizard.step <= 5


def test_retreat_needs_no_validation():
    wizard = OnboardingWizard(FakeStore())
    wizard.state.step = 4
    assert wizard.retreat() is True
    assert wizard.step == 3


# ── Step predicates ───────────────────────────────────────

@pytest.mark.parametrize("raw, expected", [
    ("5000", 5000.0),
    (" 1,250.50 ", 1250.5),
    ("", None),
    ("abc", None),
    ("nan", None),
    ("inf", None),
])
def test_parse_deposit(raw, expected):
    assert parse_deposit(raw) == expected


def test_deposit_below_minimum_blocks_step_two():
    wizard = OnboardingWizard(FakeStore())
    wizard.state.step = 2
    wizard.update_financial(initial_deposit="500")
    assert wizard.validate(2) is False
    assert wizard.advance() is False
    assert wizard.step == 2
    assert wizard.error


def test_deposit_at_minimum_passes():
    state = WizardState()
    state.financial.initial_deposit = "1000"
    assert validate_step(state, 2) is True


def test_mexico_without_bank_fails_step_three():
    wizard = OnboardingWizard(FakeStore())
    wizard.update_personal(name="Juan Pérez", country="Mexico")
    for name in ("account_holder_name", "clabe", "phone_number", "bank_branch"):
        wizard.state.banking.fields[name] = "filled"
    assert wizard.validate(3) is False


def test_blank_required_bank_field_fails_step_three():
    wizard = OnboardingWizard(FakeStore())
    wizard.update_personal(name="Jane Doe", country="France")
    wizard.select_bank("BNP Paribas")
    for name, value in FRANCE_BANK_FIELDS.items():
        wizard.set_bank_field(name, value)
    assert wizard.validate(3) is True

    wizard.set_bank_field("iban", "   ")
    assert wizard.validate(3) is False


def test_optional_bank_field_may_be_missing():
    wizard = OnboardingWizard(FakeStore())
    wizard.update_personal(name="Juan Pérez", country="Mexico")
    wizard.select_bank("Banorte")
    wizard.set_bank_field("clabe", "012345678901234567")
    wizard.set_bank_field("phone_number", "+525512345678")
    assert wizard.validate(3) is True


def test_account_holder_must_be_filled_for_step_three():
    wizard = OnboardingWizard(FakeStore())
    wizard.update_personal(name="Jane Doe", country="France")
    wizard.select_bank("BNP Paribas")
    for name in ("iban", "bic", "address"):
        wizard.set_bank_field(name, FRANCE_BANK_FIELDS[name])
    assert wizard.validate(3) is False

    wizard.set_bank_field("account_holder_name", "Jane Doe")
    assert wizard.validate(3) is True


def test_bank_field_max_length_enforced():
    wizard = OnboardingWizard(FakeStore())
    wizard.update_personal(country="France")
    wizard.select_bank("BNP Paribas")
    assert wizard.set_bank_field("bic", "X" * 12) is False
    assert "bic" not in wizard.state.banking.fields
    assert wizard.error


def test_country_change_clears_bank_selection():
    wizard = OnboardingWizard(FakeStore())
    wizard.select_bank("Banorte")
    wizard.set_bank_field("clabe", "012345678901234567")
    wizard.update_personal(country="France")
    assert wizard.state.banking.selected_bank == ""
    assert wizard.state.banking.fields == {}


def test_unknown_step_is_never_valid():
    assert validate_step(WizardState(), 0) is False
    assert validate_step(WizardState(), 6) is False


# ── Documents ─────────────────────────────────────────────

@pytest.mark.asyncio
async def test_identity_slot_replaces_previous_document():
    wizard = OnboardingWizard(FakeStore())
    assert await wizard.attach(_png(1024, "card.png"), DocumentSlot.IDENTITY)
    wizard.set_id_type("passport")
    assert await wizard.attach(_png(2048, "passport.png"), DocumentSlot.IDENTITY)

    identity = [d for d in wizard.state.documents.values()
                if d.document_type in (DocumentType.ID_CARD, DocumentType.PASSPORT)]
    assert len(identity) == 1
    assert identity[0].document_type == DocumentType.PASSPORT
    assert identity[0].file_name == "passport.png"


@pytest.mark.asyncio
async def test_deposit_slot_replaces_previous_document():
    wizard = OnboardingWizard(FakeStore())
    await wizard.attach(_pdf(1024, "first.pdf"), DocumentSlot.PROOF_OF_DEPOSIT)
    await wizard.attach(_pdf(1024, "second.pdf"), DocumentSlot.PROOF_OF_DEPOSIT)
    assert len(wizard.state.documents) == 1
    assert wizard.document(DocumentSlot.PROOF_OF_DEPOSIT).file_name == "second.pdf"


@pytest.mark.asyncio
async def test_attach_encodes_data_url_and_clears_error():
    wizard = OnboardingWizard(FakeStore())
    wizard.state.error = "previous problem"
    await wizard.attach(UploadedFile.from_bytes("a.png", "image/png", b"hello"), DocumentSlot.IDENTITY)
    doc = wizard.document(DocumentSlot.IDENTITY)
    assert doc.url == "data:image/png;base64,aGVsbG8="
    assert doc.document_type == DocumentType.ID_CARD
    assert wizard.error == ""


@pytest.mark.asyncio
async def test_oversized_upload_keeps_prior_document():
    wizard = OnboardingWizard(FakeStore())
    await wizard.attach(_png(1024, "keep.png"), DocumentSlot.IDENTITY)

    read_calls = []

    async def _read():
        read_calls.append(True)
        return b""

    big = UploadedFile("huge.png", "image/png", MAX_FILE_SIZE + 1, _read)
    assert await wizard.attach(big, DocumentSlot.IDENTITY) is False
    assert wizard.document(DocumentSlot.IDENTITY).file_name == "keep.png"
    assert "10MB" in wizard.error
    assert wizard.state.is_busy is False
    assert read_calls == []


@pytest.mark.asyncio
async def test_upload_without_declared_size_is_measured():
    wizard = OnboardingWizard(FakeStore())
    await wizard.attach(_png(1024, "keep.png"), DocumentSlot.IDENTITY)

    async def _read():
        return b"\x89PNG" + b"0" * (11 * 1024 * 1024)

    assert await wizard.attach(UploadedFile("big.png", "image/png", 0, _read), DocumentSlot.IDENTITY) is False
    assert wizard.document(DocumentSlot.IDENTITY).file_name == "keep.png"
    assert wizard.document(DocumentSlot.IDENTITY).file_size == 1024
    assert "10MB" in wizard.error


@pytest.mark.asyncio
async def test_unsupported_type_keeps_prior_document():
    wizard = OnboardingWizard(FakeStore())
    await wizard.attach(_pdf(1024, "keep.pdf"), DocumentSlot.PROOF_OF_DEPOSIT)
    gif = UploadedFile.from_bytes("anim.gif", "image/gif", b"GIF89a")
    assert await wizard.attach(gif, DocumentSlot.PROOF_OF_DEPOSIT) is False
    assert wizard.document(DocumentSlot.PROOF_OF_DEPOSIT).file_name == "keep.pdf"
    assert "JPG, PNG, or PDF" in wizard.error
    assert wizard.state.is_busy is False


@pytest.mark.asyncio
async def test_read_failure_is_reported():
    async def _broken():
        raise OSError("disk gone")

    wizard = OnboardingWizard(FakeStore())
    upload = UploadedFile("id.jpg", "image/jpeg", 100, _broken)
    assert await wizard.attach(upload, DocumentSlot.IDENTITY) is False
    assert wizard.error == "Failed to upload file. Please try again."
    assert wizard.document(DocumentSlot.IDENTITY) is None
    assert wizard.state.is_busy is False


@pytest.mark.asyncio
async def test_cancelled_attach_leaves_state_unchanged():
    wizard = OnboardingWizard(FakeStore())
    blocker = asyncio.Event()

    async def _slow():
        await blocker.wait()
        return b"never"

    task = asyncio.create_task(
        wizard.attach(UploadedFile("id.png", "image/png", 10, _slow), DocumentSlot.IDENTITY)
    )
    await asyncio.sleep(0)
    assert wizard.state.is_busy is True
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert wizard.state == WizardState()


@pytest.mark.asyncio
async def test_busy_wizard_refuses_new_operations():
    store = FakeStore()
    wizard = OnboardingWizard(store)
    await _fill_all_steps(wizard)
    wizard.state.is_busy = True

    assert await wizard.attach(_png(1024), DocumentSlot.IDENTITY) is False
    assert await wizard.submit(ACTOR) is False
    assert store.calls == []
    assert wizard.error


def test_remove_document():
    wizard = OnboardingWizard(FakeStore())
    wizard.remove(DocumentSlot.IDENTITY)
    assert wizard.state.documents == {}


# ── Submission ────────────────────────────────────────────

@pytest.mark.asyncio
async def test_submit_jane_doe_france():
    store = FakeStore()
    wizard = OnboardingWizard(store)
    await _fill_all_steps(wizard)
    wizard.state.step = 5

    assert await wizard.submit(ACTOR) is True
    assert wizard.state.is_success is True
    assert wizard.state.request_id == "req-123"
    assert len(store.calls) == 1

    payload = store.calls[0]
    assert payload["bank_details"]["currency"] == "EUR"
    assert payload["bank_details"]["bank_name"] == "BNP Paribas"
    assert payload["bank_details"]["iban"] == FRANCE_BANK_FIELDS["iban"]
    assert payload["initial_deposit"] == 5000
    assert payload["status"] == "pending"
    assert payload["requested_by"] == "4242"
    assert payload["identity_document"]["type"] == "id_card"
    assert payload["identity_document"]["file_type"] == "image/png"
    assert payload["proof_of_deposit"]["type"] == "proof_of_deposit"
    assert payload["proof_of_deposit"]["file_size"] == 1024 * 1024
    assert payload["agreement_accepted"] is True


@pytest.mark.asyncio
async def test_request_defaults_account_holder_to_applicant():
    wizard = OnboardingWizard(FakeStore())
    await _fill_all_steps(wizard)
    wizard.state.banking.fields.pop("account_holder_name")

    payload = build_request(wizard.state, ACTOR)
    assert payload["bank_details"]["account_holder_name"] == "Jane Doe"


def _break_personal(w): w.update_personal(city="")
def _break_financial(w): w.update_financial(initial_deposit="999")
def _break_banking(w): w.state.banking.selected_bank = ""
def _break_documents(w): w.remove(DocumentSlot.PROOF_OF_DEPOSIT)
def _break_agreement(w): w.accept_agreement(False)


@pytest.mark.asyncio
@pytest.mark.parametrize("breaker", [
    _break_personal, _break_financial, _break_banking, _break_documents, _break_agreement,
])
async def test_submit_rechecks_every_step(breaker):
    store = FakeStore()
    wizard = OnboardingWizard(store)
    await _fill_all_steps(wizard)
    wizard.state.step = 5
    breaker(wizard)

    assert await wizard.submit(ACTOR) is False
    assert store.calls == []
    assert wizard.error == "Please complete all steps before submitting"
    assert wizard.step == 5


@pytest.mark.asyncio
async def test_submit_requires_actor():
    store = FakeStore()
    wizard = OnboardingWizard(store)
    await _fill_all_steps(wizard)
    assert await wizard.submit(None) is False
    assert store.calls == []


@pytest.mark.asyncio
async def test_store_failure_keeps_wizard_on_step_five():
    store = FakeStore(fail=True)
    wizard = OnboardingWizard(store)
    await _fill_all_steps(wizard)
    wizard.state.step = 5

    assert await wizard.submit(ACTOR) is False
    assert wizard.step == 5
    assert wizard.state.is_success is False
    assert wizard.state.is_busy is False
    assert wizard.error == "Failed to submit application. Please try again."

    store.fail = False
    assert await wizard.submit(ACTOR) is True
    assert len(store.calls) == 2


@pytest.mark.asyncio
async def test_success_callback_fires_then_resets():
    calls = []
    wizard = OnboardingWizard(FakeStore(), on_success=lambda: calls.append("done"), success_delay=0)
    await _fill_all_steps(wizard)

    assert await wizard.submit(ACTOR) is True
    await wizard.success_task
    assert calls == ["done"]
    assert wizard.state == WizardState()


@pytest.mark.asyncio
async def test_second_submit_after_success_is_refused():
    store = FakeStore()
    wizard = OnboardingWizard(store)
    await _fill_all_steps(wizard)

    assert await wizard.submit(ACTOR) is True
    assert await wizard.submit(ACTOR) is False
    assert len(store.calls) == 1
    assert wizard.state.is_success is True
    assert wizard.state.request_id == "req-123"


class BlockingStore(FakeStore):
    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()

    async def create_onboarding_request(self, payload: dict) -> str:
        self.calls.append(payload)
        await self.release.wait()
        return "req-123"


@pytest.mark.asyncio
async def test_cancelled_submit_leaves_state_unchanged():
    store = BlockingStore()
    wizard = OnboardingWizard(store)
    await _fill_all_steps(wizard)
    wizard.state.step = 5
    wizard.state.error = "Failed to submit application. Please try again."

    task = asyncio.create_task(wizard.submit(ACTOR))
    await asyncio.sleep(0)
    assert wizard.state.is_busy is True
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert wizard.state.is_busy is False
    assert wizard.state.is_success is False
    assert wizard.state.request_id is None
    assert wizard.error == "Failed to submit application. Please try again."
    assert wizard.step == 5


@pytest.mark.asyncio
async def test_close_cancels_pending_success_callback():
    calls = []
    wizard = OnboardingWizard(FakeStore(), on_success=lambda: calls.append("done"), success_delay=0.05)
    await _fill_all_steps(wizard)
    assert await wizard.submit(ACTOR) is True
    pending = wizard.success_task

    wizard.close()
    wizard.update_personal(name="New Applicant")
    await asyncio.sleep(0.1)

    assert pending.cancelled()
    assert wizard.success_task is None
    assert calls == []
    assert wizard.state.personal.name == "New Applicant"


# ── Reset / close ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_reset_restores_fresh_state():
    wizard = OnboardingWizard(FakeStore(fail=True))
    await _fill_all_steps(wizard)
    wizard.set_deposit_method("crypto", "ETH")
    wizard.state.step = 5
    await wizard.submit(ACTOR)
    assert wizard.state != WizardState()

    wizard.reset()
    assert wizard.state == WizardState()


def test_close_resets_and_notifies():
    closed = []
    wizard = OnboardingWizard(FakeStore(), on_close=lambda: closed.append(True))
    wizard.update_personal(name="Jane Doe")
    wizard.close()
    assert closed == [True]
    assert wizard.state == WizardState()
