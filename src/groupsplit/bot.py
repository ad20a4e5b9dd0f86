from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher

from groupsplit.config import get_settings
from groupsplit.db.repo import Database, GroupSplitRepository
from groupsplit.handlers import basic_router, expenses_router, groups_router, payments_router
from groupsplit.logging import configure_logging, get_logger


def build_dispatcher(repo: GroupSplitRepository) -> Dispatcher:
    # Handlers receive ``repo`` and ``settings`` as keyword arguments.
    dp = Dispatcher(repo=repo, settings=get_settings())
    dp.include_router(basic_router)
    dp.include_router(groups_router)
    dp.include_router(expenses_router)
    dp.include_router(payments_router)
    return dp


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    bot = Bot(token=settings.bot_token)
    db = Database(settings.database_url)
    await db.connect()
    repo = GroupSplitRepository(db)
    dp = build_dispatcher(repo)

    log = get_logger(__name__)
    log.info("bot.start")
    try:
        await dp.start_polling(bot)
    finally:
        await db.close()
        await bot.session.close()
        log.info("bot.stop")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
