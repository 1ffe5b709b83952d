"""
Investor Onboarding Bot Handler — Telegram front-end for the 5-step wizard.

Flow:
  1. Personal (name, email, phone, country, city) → 2. Financial (deposit, account type)
  → 3. Banking (bank + country fields) → 4. Verification (ID type, ID upload, deposit proof)
  → 5. Agreement & Submit

Each step asks its questions one by one, then offers Back / Next.
All validation and submission logic lives in onboarding.wizard.
"""

import logging
import re

from aiogram import Bot, Router, F
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, CallbackQuery, InlineKeyboardMarkup, InlineKeyboardButton

from config import settings
from keyboards.onboarding_kb import (
    account_type_keyboard,
    agreement_keyboard,
    bank_keyboard,
    country_keyboard,
    id_type_keyboard,
    remove_document_keyboard,
    retry_keyboard,
    skip_keyboard,
    step_nav_keyboard,
)
from onboarding.banking import ACCOUNT_HOLDER_FIELD, Country, banks_for, get_profile
from onboarding.documents import DocumentSlot, UploadedFile
from onboarding.store import HttpRequestStore
from onboarding.wizard import (
    MINIMUM_DEPOSIT,
    STEP_TITLES,
    Actor,
    OnboardingWizard,
    parse_deposit,
)
from states.investor_onboarding import InvestorOnboarding, STEP_STATES

router = Router()
logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")

_store = HttpRequestStore(settings.API_BASE_URL)
_wizards: dict[int, OnboardingWizard] = {}

PROMPTS = {
    "name": "What is your <b>full legal name</b>?",
    "email": "Enter your <b>email address</b>:",
    "phone": "Enter your <b>phone number</b> (optional):",
    "country": "Select your <b>country</b>:",
    "city": "Enter your <b>city</b>:",
    "deposit": (
        f"Enter your <b>initial deposit</b> in USD.\n"
        f"<i>Minimum: ${MINIMUM_DEPOSIT:,.0f}</i>"
    ),
    "account_type": "Choose your <b>account type</b>:",
    "bank": "Select your <b>bank</b>:",
    "id_type": "Which <b>identity document</b> will you upload?",
    "identity": (
        "Send a clear photo or PDF scan of your <b>{id_label}</b>.\n"
        "📎 <i>JPG, PNG or PDF, max 10MB.</i>"
    ),
    "proof_of_deposit": (
        "Send a bank statement or screenshot showing your <b>initial deposit</b>.\n"
        "📎 <i>JPG, PNG or PDF, max 10MB.</i>"
    ),
}


def _header(step: int) -> str:
    return f"<b>Step {step}/5 — {STEP_TITLES[step]}</b>\n\n"


def _questions(wizard: OnboardingWizard, step: int) -> list[str]:
    if step == 1:
        return ["name", "email", "phone", "country", "city"]
    if step == 2:
        return ["deposit", "account_type"]
    if step == 3:
        profile = get_profile(wizard.state.personal.country)
        return ["bank"] + [f.name for f in profile.fields] if profile else ["bank"]
    if step == 4:
        return ["id_type", "identity", "proof_of_deposit"]
    return []


def _next_question(wizard: OnboardingWizard, current: str | None) -> str | None:
    questions = _questions(wizard, wizard.step)
    if current is None:
        return questions[0] if questions else None
    try:
        index = questions.index(current)
    except ValueError:
        return None
    return questions[index + 1] if index + 1 < len(questions) else None


def _release(telegram_id: int, wizard: OnboardingWizard) -> None:
    if _wizards.get(telegram_id) is wizard:
        _wizards.pop(telegram_id, None)


def _open_wizard(telegram_id: int) -> OnboardingWizard:
    wizard = OnboardingWizard(_store)
    wizard.on_success = lambda: _release(telegram_id, wizard)
    wizard.on_close = lambda: _release(telegram_id, wizard)
    _wizards[telegram_id] = wizard
    return wizard


# ── Prompts ───────────────────────────────────────────────

async def _ask(message: Message, state: FSMContext, wizard: OnboardingWizard, field: str | None):
    """Ask `field`, or close out the step when there is nothing left to ask."""
    await state.update_data(field=field)
    step = wizard.step

    if field is None:
        await message.answer(
            f"✅ <b>{STEP_TITLES[step]}</b> complete.\n\nTap <b>Next</b> to continue.",
            reply_markup=step_nav_keyboard(step),
        )
        return

    kb = None
    if field in PROMPTS:
        text = PROMPTS[field]
        if field == "phone":
            kb = skip_keyboard()
        elif field == "country":
            kb = country_keyboard()
        elif field == "account_type":
            kb = account_type_keyboard()
        elif field == "bank":
            kb = bank_keyboard(wizard.state.personal.country)
        elif field == "id_type":
            kb = id_type_keyboard()
        elif field == "identity":
            id_label = "ID card" if wizard.state.verification.id_type.value == "id_card" else "passport"
            text = text.format(id_label=id_label)
    else:
        descriptor = get_profile(wizard.state.personal.country).field(field)
        text = f"Enter your <b>{descriptor.label}</b>"
        if descriptor.max_length:
            text += f" (max {descriptor.max_length} characters)"
        if field == ACCOUNT_HOLDER_FIELD:
            text += f"\n<i>Skip to use {wizard.state.personal.name}</i>"
            kb = skip_keyboard()
        elif not descriptor.required:
            text += " (optional)"
            kb = skip_keyboard()
        text += ":"

    await message.answer(_header(step) + text, reply_markup=kb)


async def _enter_step(message: Message, state: FSMContext, wizard: OnboardingWizard):
    await state.set_state(STEP_STATES[wizard.step])
    if wizard.step == 5:
        await _show_summary(message, wizard)
        return
    if wizard.validate():
        kb = step_nav_keyboard(wizard.step)
        kb.inline_keyboard.insert(0, [InlineKeyboardButton(text="✏️ Edit", callback_data="onboard_edit")])
        await state.update_data(field=None)
        await message.answer(
            _header(wizard.step) + "This step is already complete.",
            reply_markup=kb,
        )
        return
    await _ask(message, state, wizard, _next_question(wizard, None))


async def _show_summary(message: Message, wizard: OnboardingWizard):
    s = wizard.summary()
    deposit = s["initial_deposit"] or 0
    text = (
        _header(5)
        + "📋 <b>Application Summary</b>\n\n"
        f"👤 <b>Name:</b> {s['name']}\n"
        f"📧 <b>Email:</b> {s['email']}\n"
        f"🌍 <b>Country:</b> {s['country']} ({s['city']})\n"
        f"💵 <b>Initial Deposit:</b> ${deposit:,.2f}\n"
        f"📈 <b>Account Type:</b> {s['account_type']}\n"
        f"🏦 <b>Bank:</b> {s['bank']} — withdrawals in {s['currency']}\n"
        f"🪪 <b>Identity:</b> {s['identity_document'] or '❌ Missing'}\n"
        f"📄 <b>Deposit Proof:</b> {s['proof_of_deposit'] or '❌ Missing'}\n\n"
        "I understand that my account will be reviewed by a Governor for final approval, "
        "and that this process may take up to 7 business days.\n\n"
        f"Agreement: {'✅ Accepted' if wizard.state.agreement_accepted else '⬜ Not accepted'}"
    )
    await message.answer(text, reply_markup=agreement_keyboard(wizard.state.agreement_accepted))


async def _get_wizard(event: Message | CallbackQuery, state: FSMContext) -> OnboardingWizard | None:
    wizard = _wizards.get(event.from_user.id)
    if wizard is None:
        await state.clear()
        target = event.message if isinstance(event, CallbackQuery) else event
        await target.answer("⌛ Your onboarding session expired. Send /invest to start again.")
    return wizard


# ── Entry / exit ──────────────────────────────────────────

@router.message(Command("invest"))
async def cmd_invest(message: Message, state: FSMContext):
    await state.clear()
    wizard = _open_wizard(message.from_user.id)
    await message.answer(
        "━━━━━━━━━━━━━━━━━━━━━━\n"
        "💼 <b>Investor Account Opening</b>\n"
        "━━━━━━━━━━━━━━━━━━━━━━\n\n"
        "We'll collect your personal, financial and banking details,\n"
        "then two documents for verification."
    )
    await _enter_step(message, state, wizard)


@router.callback_query(F.data == "open_onboarding")
async def open_onboarding(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await state.clear()
    wizard = _open_wizard(callback.from_user.id)
    await _enter_step(callback.message, state, wizard)


@router.callback_query(F.data == "onboard_cancel")
async def cancel_onboarding(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    wizard = _wizards.get(callback.from_user.id)
    if wizard:
        wizard.close()
    await state.clear()
    await callback.message.edit_text("✖️ Onboarding cancelled. Send /invest to start again.")


# ── Navigation ────────────────────────────────────────────

@router.callback_query(F.data == "onboard_next")
async def next_step(callback: CallbackQuery, state: FSMContext):
    wizard = await _get_wizard(callback, state)
    if not wizard:
        return
    if not wizard.advance():
        await callback.answer(wizard.error, show_alert=True)
        return
    await callback.answer()
    await _enter_step(callback.message, state, wizard)


@router.callback_query(F.data == "onboard_back")
async def previous_step(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    wizard = await _get_wizard(callback, state)
    if not wizard:
        return
    wizard.retreat()
    await _enter_step(callback.message, state, wizard)


@router.callback_query(F.data == "onboard_edit")
async def edit_step(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    wizard = await _get_wizard(callback, state)
    if wizard:
        await _ask(callback.message, state, wizard, _next_question(wizard, None))


@router.callback_query(F.data == "onboard_skip")
async def skip_question(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    wizard = await _get_wizard(callback, state)
    if not wizard:
        return
    field = (await state.get_data()).get("field")
    if field == "phone":
        wizard.update_personal(phone="")
    elif field == ACCOUNT_HOLDER_FIELD:
        wizard.set_bank_field(field, wizard.state.personal.name)
    elif field and wizard.step == 3:
        wizard.state.banking.fields.pop(field, None)
    await _ask(callback.message, state, wizard, _next_question(wizard, field))


# ── Step 1: Personal ──────────────────────────────────────

@router.message(InvestorOnboarding.personal)
async def process_personal(message: Message, state: FSMContext):
    wizard = await _get_wizard(message, state)
    if not wizard:
        return
    field = (await state.get_data()).get("field")
    value = (message.text or "").strip()

    if field == "country":
        await message.answer("⚠️ Please pick your country from the buttons above.")
        return
    if field not in ("name", "email", "phone", "city"):
        await message.answer("Tap <b>Next</b> to continue.", reply_markup=step_nav_keyboard(wizard.step))
        return
    if field in ("name", "city") and not value:
        await message.answer("⚠️ This field is required. Please try again:")
        return
    if field == "email" and not EMAIL_RE.match(value):
        await message.answer("⚠️ Invalid email format. Please enter a valid email:")
        return

    wizard.update_personal(**{field: value})
    await _ask(message, state, wizard, _next_question(wizard, field))


@router.callback_query(F.data.startswith("country_"), InvestorOnboarding.personal)
async def process_country(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    wizard = await _get_wizard(callback, state)
    if not wizard:
        return
    country = Country[callback.data.replace("country_", "")]
    wizard.update_personal(country=country.value)
    await callback.message.edit_text(f"✅ Country: <b>{country.value}</b>")
    await _ask(callback.message, state, wizard, _next_question(wizard, "country"))


# ── Step 2: Financial ─────────────────────────────────────

@router.message(InvestorOnboarding.financial)
async def process_financial(message: Message, state: FSMContext):
    wizard = await _get_wizard(message, state)
    if not wizard:
        return
    field = (await state.get_data()).get("field")
    if field != "deposit":
        await message.answer("Please use the buttons above.")
        return

    amount = parse_deposit(message.text)
    if amount is None or amount < MINIMUM_DEPOSIT:
        await message.answer(f"⚠️ Minimum initial deposit is ${MINIMUM_DEPOSIT:,.0f}. Please enter an amount:")
        return

    wizard.update_financial(initial_deposit=message.text)
    await _ask(message, state, wizard, _next_question(wizard, field))


@router.callback_query(F.data.startswith("account_"), InvestorOnboarding.financial)
async def process_account_type(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    wizard = await _get_wizard(callback, state)
    if not wizard:
        return
    account_type = callback.data.replace("account_", "")
    wizard.update_financial(account_type=account_type)
    await callback.message.edit_text(f"✅ Account type: <b>{account_type}</b>")
    await _ask(callback.message, state, wizard, _next_question(wizard, "account_type"))


# ── Step 3: Banking ───────────────────────────────────────

@router.callback_query(F.data.startswith("bank_"), InvestorOnboarding.banking)
async def process_bank(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    wizard = await _get_wizard(callback, state)
    if not wizard:
        return
    banks = banks_for(wizard.state.personal.country)
    index = int(callback.data.replace("bank_", ""))
    if index >= len(banks):
        return
    wizard.select_bank(banks[index])
    await callback.message.edit_text(f"✅ Bank: <b>{banks[index]}</b>")
    await _ask(callback.message, state, wizard, _next_question(wizard, "bank"))


@router.message(InvestorOnboarding.banking)
async def process_bank_field(message: Message, state: FSMContext):
    wizard = await _get_wizard(message, state)
    if not wizard:
        return
    field = (await state.get_data()).get("field")
    if field in (None, "bank"):
        await message.answer("Please use the buttons above.")
        return

    value = (message.text or "").strip()
    descriptor = get_profile(wizard.state.personal.country).field(field)
    if descriptor.required and not value:
        await message.answer(f"⚠️ {descriptor.label} is required. Please try again:")
        return
    if not wizard.set_bank_field(field, value):
        await message.answer(f"⚠️ {wizard.error}. Please try again:")
        return

    await _ask(message, state, wizard, _next_question(wizard, field))


# ── Step 4: Verification ──────────────────────────────────

@router.callback_query(F.data.startswith("idtype_"), InvestorOnboarding.verification)
async def process_id_type(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    wizard = await _get_wizard(callback, state)
    if not wizard:
        return
    wizard.set_id_type(callback.data.replace("idtype_", ""))
    await _ask(callback.message, state, wizard, _next_question(wizard, "id_type"))


def _download_reader(bot: Bot, file_id: str):
    async def _read() -> bytes:
        buffer = await bot.download(file_id)
        return buffer.read()
    return _read


async def _attach_upload(message: Message, state: FSMContext, upload: UploadedFile):
    wizard = await _get_wizard(message, state)
    if not wizard:
        return
    field = (await state.get_data()).get("field")
    if field not in (DocumentSlot.IDENTITY.value, DocumentSlot.PROOF_OF_DEPOSIT.value):
        await message.answer("Please choose your identity document type first.")
        return

    if not await wizard.attach(upload, DocumentSlot(field)):
        await message.answer(f"⚠️ {wizard.error}")
        return

    doc = wizard.document(DocumentSlot(field))
    await message.answer(
        f"✅ <b>{doc.file_name}</b> received ({doc.size_mb:.2f} MB).",
        reply_markup=remove_document_keyboard(field),
    )
    await _ask(message, state, wizard, _next_question(wizard, field))


@router.message(InvestorOnboarding.verification, F.photo)
async def process_photo_upload(message: Message, state: FSMContext):
    photo = message.photo[-1]  # Largest size
    upload = UploadedFile(
        file_name=f"{photo.file_unique_id}.jpg",
        media_type="image/jpeg",
        size=photo.file_size or 0,
        read=_download_reader(message.bot, photo.file_id),
    )
    await _attach_upload(message, state, upload)


@router.message(InvestorOnboarding.verification, F.document)
async def process_document_upload(message: Message, state: FSMContext):
    document = message.document
    upload = UploadedFile(
        file_name=document.file_name or document.file_unique_id,
        media_type=document.mime_type or "",
        size=document.file_size or 0,
        read=_download_reader(message.bot, document.file_id),
    )
    await _attach_upload(message, state, upload)


@router.callback_query(F.data.startswith("onboard_remove_"), InvestorOnboarding.verification)
async def remove_document(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    wizard = await _get_wizard(callback, state)
    if not wizard:
        return
    slot = DocumentSlot(callback.data.replace("onboard_remove_", ""))
    wizard.remove(slot)
    await callback.message.edit_text("🗑 Document removed.")
    await _ask(callback.message, state, wizard, slot.value)


@router.message(InvestorOnboarding.verification)
async def verification_invalid(message: Message, state: FSMContext):
    await message.answer("⚠️ Please send a <b>photo</b> or a <b>JPG, PNG or PDF file</b>.")


# ── Step 5: Agreement & Submit ────────────────────────────

@router.callback_query(F.data == "onboard_accept", InvestorOnboarding.agreement)
async def accept_agreement(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    wizard = await _get_wizard(callback, state)
    if not wizard:
        return
    wizard.accept_agreement()
    await callback.message.edit_reply_markup(reply_markup=agreement_keyboard(True))


@router.callback_query(F.data == "onboard_submit", InvestorOnboarding.agreement)
async def submit_application(callback: CallbackQuery, state: FSMContext):
    wizard = await _get_wizard(callback, state)
    if not wizard:
        await callback.answer()
        return
    if wizard.state.is_busy:
        await callback.answer("Submitting…")
        return
    await callback.answer("Submitting...")

    actor = Actor(id=str(callback.from_user.id), name=callback.from_user.full_name)
    if await wizard.submit(actor):
        await state.clear()
        support_kb = InlineKeyboardMarkup(inline_keyboard=[
            [InlineKeyboardButton(text="📞 Contact Support", url="https://t.me/InvestorSupport")],
        ])
        await callback.message.edit_text(
            "━━━━━━━━━━━━━━━━━━━━━━\n"
            "🎉 <b>Application Submitted!</b>\n"
            "━━━━━━━━━━━━━━━━━━━━━━\n\n"
            "Your account creation request has been submitted for <b>Governor review</b>.\n"
            "This may take up to <b>7 business days</b>.\n\n"
            f"Reference: <code>{wizard.state.request_id}</code>",
            reply_markup=support_kb,
        )
    else:
        await callback.message.answer(f"⚠️ {wizard.error}", reply_markup=retry_keyboard())
        logger.warning(
            "Onboarding submission failed: telegram_id=%s, error=%s",
            callback.from_user.id,
            wizard.error,
        )
