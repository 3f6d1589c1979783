"""
Telegram handlers.

Commands:
- /start
- /subscribe
- /unsubscribe
and a free-text handler that takes the city after /subscribe.
"""

import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

logger = logging.getLogger(__name__)

WELCOME_TEXT = (
    "Hi {first_name}, welcome to the weather bot. You can subscribe by using the "
    "/subscribe command and unsubscribe using /unsubscribe command."
)
CITY_PROMPT_TEXT = "Enter your city:"
ALREADY_AWAITING_TEXT = "You have already requested to enter a city. Please wait for the prompt."
REGISTERED_TEXT = "You have been registered."
ALREADY_REGISTERED_TEXT = "You are already registered."
REGISTRATION_FAILED_TEXT = "Registration failed. Please try again."
UNREGISTERED_TEXT = "You have been unregistered."
NOT_REGISTERED_TEXT = "You are not registered."
UNREGISTRATION_FAILED_TEXT = "Unregistration failed. Please try again."
GENERIC_ERROR_TEXT = "Something went wrong, please try again later."


class CommandDispatcher:
    """Per-chat subscribe flow: Idle -> AwaitingCity -> Idle."""

    def __init__(self, state, users, notifier):
        self.state = state
        self.users = users
        self.notifier = notifier

    async def cmd_start(self, message: Message):
        user = message.from_user
        logger.info(f"User started the bot: {user.first_name} {user.last_name} (@{user.username})")
        await message.answer(WELCOME_TEXT.format(first_name=user.first_name))

    async def cmd_subscribe(self, message: Message):
        chat_id = message.chat.id

        if self.state.mark_awaiting(chat_id):
            await message.answer(CITY_PROMPT_TEXT)
        else:
            await message.answer(ALREADY_AWAITING_TEXT)

    async def cmd_unsubscribe(self, message: Message):
        chat_id = message.chat.id

        try:
            existing_user = await self.users.get_user_by_chat_id(chat_id)
            if existing_user is None:
                await message.answer(NOT_REGISTERED_TEXT)
                return

            deleted_user = await self.users.delete_user(chat_id)
        except Exception as e:
            logger.exception(f"Error in /unsubscribe for chat {chat_id}: {e}")
            await message.answer(GENERIC_ERROR_TEXT)
            return

        if deleted_user is None:
            await message.answer(UNREGISTRATION_FAILED_TEXT)
            return

        self.state.remove_subscriber(chat_id)
        logger.info(f"User unsubscribed: chat {chat_id} (@{existing_user.username})")
        await message.answer(UNREGISTERED_TEXT)

    async def process_city(self, message: Message):
        chat_id = message.chat.id

        if not self.state.is_awaiting(chat_id):
            return

        city = (message.text or "").strip()
        self.state.clear_awaiting(chat_id)

        user = message.from_user
        logger.info(f"User entered city: {user.first_name} {user.last_name} (@{user.username}), City: {city}")

        try:
            existing_user = await self.users.get_user_by_chat_id(chat_id)
            if existing_user is not None:
                await message.answer(ALREADY_REGISTERED_TEXT)
                return

            created = await self.users.create_user(
                chat_id,
                user.first_name,
                last_name=user.last_name,
                username=user.username,
                city=city,
            )
        except Exception as e:
            logger.exception(f"Error while registering chat {chat_id}: {e}")
            await message.answer(GENERIC_ERROR_TEXT)
            return

        if created is None:
            await message.answer(REGISTRATION_FAILED_TEXT)
            return

        self.state.add_subscriber(chat_id)
        await self.notifier.send_weather_update(chat_id, city)
        logger.info(f"User registered: {user.first_name} {user.last_name} (@{user.username})")
        await message.answer(REGISTERED_TEXT)


def create_router(dispatcher: CommandDispatcher) -> Router:
    router = Router()
    router.message.register(dispatcher.cmd_start, CommandStart(ignore_case=True))
    router.message.register(dispatcher.cmd_subscribe, Command(commands=["subscribe"], ignore_case=True))
    router.message.register(dispatcher.cmd_unsubscribe, Command(commands=["unsubscribe"], ignore_case=True))
    # anything starting with "/" that got here is an unknown command and is dropped
    router.message.register(dispatcher.process_city, F.text, ~F.text.startswith("/"))
    return router
