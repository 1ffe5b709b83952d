"""Inline keyboard builders for the investor onboarding wizard."""

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from onboarding.banking import Country, banks_for
from onboarding.wizard import MAX_STEP, MIN_STEP


def step_nav_keyboard(step: int) -> InlineKeyboardMarkup:
    """Back / Next row shown once a step's questions are answered."""
    row = []
    if step > MIN_STEP:
        row.append(InlineKeyboardButton(text="⬅️ Back", callback_data="onboard_back"))
    if step < MAX_STEP:
        row.append(InlineKeyboardButton(text="Next ➡️", callback_data="onboard_next"))
    return InlineKeyboardMarkup(inline_keyboard=[
        row,
        [InlineKeyboardButton(text="✖️ Cancel", callback_data="onboard_cancel")],
    ])


def skip_keyboard(callback_data: str = "onboard_skip") -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="⏩ Skip", callback_data=callback_data)],
    ])


def country_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=f"🌍 {c.value}", callback_data=f"country_{c.name}")]
        for c in Country
    ])


def account_type_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[[
        InlineKeyboardButton(text="📈 Standard", callback_data="account_Standard"),
        InlineKeyboardButton(text="🚀 Pro", callback_data="account_Pro"),
    ]])


def bank_keyboard(country: str) -> InlineKeyboardMarkup:
    """One button per bank; callback carries the bank's index in the profile."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=f"🏦 {bank}", callback_data=f"bank_{i}")]
        for i, bank in enumerate(banks_for(country))
    ])


def id_type_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[[
        InlineKeyboardButton(text="🪪 ID Card", callback_data="idtype_id_card"),
        InlineKeyboardButton(text="🛂 Passport", callback_data="idtype_passport"),
    ]])


def agreement_keyboard(accepted: bool) -> InlineKeyboardMarkup:
    buttons = []
    if not accepted:
        buttons.append([InlineKeyboardButton(text="☑️ I Accept the Terms", callback_data="onboard_accept")])
    buttons.append([InlineKeyboardButton(text="✅ Submit Application", callback_data="onboard_submit")])
    buttons.append([
        InlineKeyboardButton(text="⬅️ Back", callback_data="onboard_back"),
        InlineKeyboardButton(text="✖️ Cancel", callback_data="onboard_cancel"),
    ])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def retry_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🔄 Try Again", callback_data="onboard_submit")],
        [InlineKeyboardButton(text="✖️ Cancel", callback_data="onboard_cancel")],
    ])


def remove_document_keyboard(slot: str) -> InlineKeyboardMarkup:
    """Shown under a received upload so it can be dropped and sent again."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🗑 Remove & re-upload", callback_data=f"onboard_remove_{slot}")],
    ])
