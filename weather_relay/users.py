import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from .db import async_session_maker
from .models import User

logger = logging.getLogger(__name__)


class UserService:
    """CRUD over user records keyed by Telegram chat id.

    Mutations report failure by returning ``None``; reads let database
    errors propagate to the caller.
    """

    def __init__(self, session_maker=None):
        self._session_maker = session_maker or async_session_maker

    async def get_users(self) -> list[User]:
        async with self._session_maker() as session:
            result = await session.scalars(select(User))
            return list(result.all())

    async def get_user_by_chat_id(self, chat_id: int) -> User | None:
        async with self._session_maker() as session:
            return await session.scalar(select(User).where(User.chat_id == chat_id))

    async def create_user(
        self,
        chat_id: int,
        first_name: str | None,
        last_name: str | None = None,
        username: str | None = None,
        city: str | None = None,
    ) -> User | None:
        try:
            async with self._session_maker() as session:
                user = User(
                    chat_id=chat_id,
                    first_name=first_name,
                    last_name=last_name,
                    username=username,
                    city=city,
                )
                session.add(user)
                await session.commit()
                return user
        except SQLAlchemyError as e:
            logger.exception(f"Failed to create user for chat {chat_id}: {e}")
            return None

    async def delete_user(self, chat_id: int) -> User | None:
        try:
            async with self._session_maker() as session:
                user = await session.scalar(select(User).where(User.chat_id == chat_id))
                if user is None:
                    return None
                await session.delete(user)
                await session.commit()
                return user
        except SQLAlchemyError as e:
            logger.exception(f"Failed to delete user for chat {chat_id}: {e}")
            return None
