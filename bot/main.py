"""Investor onboarding bot — entry point."""

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.fsm.storage.redis import RedisStorage
from aiogram.types import Message, InlineKeyboardMarkup, InlineKeyboardButton

from config import settings
from handlers import investor_onboarding

logger = logging.getLogger(__name__)


def main_menu_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="💼 Open an Investor Account", callback_data="open_onboarding")],
    ])


async def cmd_start(message: Message, state: FSMContext) -> None:
    await state.clear()
    await message.answer(
        "👋 Welcome!\n"
        "Tap <b>Open an Investor Account</b> to start your application.",
        reply_markup=main_menu_kb(),
    )


def build_dispatcher() -> Dispatcher:
    storage = RedisStorage.from_url(settings.REDIS_URL) if settings.REDIS_URL else MemoryStorage()
    dp = Dispatcher(storage=storage)
    dp.message.register(cmd_start, Command("start"))
    dp.include_router(investor_onboarding.router)
    return dp


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.TELEGRAM_BOT_TOKEN:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is not set")

    bot = Bot(
        token=settings.TELEGRAM_BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = build_dispatcher()
    logger.info("🚀 Investor onboarding bot starting...")
    asyncio.run(dp.start_polling(bot))


if __name__ == "__main__":
    main()
