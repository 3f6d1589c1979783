import asyncio
import logging
import os

from aiogram import Bot

from .admin import AdminService
from .bot import create_dispatcher
from .config import settings
from .db import engine
from .handlers import CommandDispatcher
from .models import Base
from .notifier import WeatherNotifier
from .scheduler import create_scheduler
from .subscriptions import SubscriptionState
from .users import UserService

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    if not os.path.exists(settings.log_dir):
        os.makedirs(settings.log_dir)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(os.path.join(settings.log_dir, "app.log")),
        ],
    )


async def main():
    setup_logging()

    if not settings.telegram_bot_token:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is not set in environment")

    bot = Bot(token=settings.telegram_bot_token)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    admin = AdminService()
    await admin.load()

    users = UserService()
    state = SubscriptionState(users)
    await state.initialize()

    notifier = WeatherNotifier(bot, state, admin, settings.default_city)
    dp = create_dispatcher(CommandDispatcher(state, users, notifier))

    scheduler = create_scheduler(notifier)
    scheduler.start()
    logger.info(f"Hourly weather job scheduled for default city {settings.default_city}")

    try:
        await dp.start_polling(bot)
    finally:
        scheduler.shutdown()
        await engine.dispose()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
