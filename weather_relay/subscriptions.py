import logging

logger = logging.getLogger(__name__)


class SubscriptionState:
    """In-memory subscriber set and awaiting-city flags.

    The subscriber set mirrors the user store: callers add or remove a
    chat only after the matching store mutation has succeeded. Awaiting
    flags live only for the lifetime of the process.
    """

    def __init__(self, users):
        self._users = users
        self._subscribed: set[int] = set()
        self._awaiting: dict[int, bool] = {}

    async def initialize(self) -> None:
        try:
            users = await self._users.get_users()
        except Exception as e:
            logger.exception(f"Failed to load subscribed users, starting with none: {e}")
            self._subscribed.clear()
            return

        self._subscribed = {user.chat_id for user in users}
        logger.info(f"Loaded {len(self._subscribed)} subscribed users")

    def mark_awaiting(self, chat_id: int) -> bool:
        if chat_id in self._awaiting:
            return False
        self._awaiting[chat_id] = True
        return True

    def is_awaiting(self, chat_id: int) -> bool:
        return chat_id in self._awaiting

    def clear_awaiting(self, chat_id: int) -> None:
        self._awaiting.pop(chat_id, None)

    def add_subscriber(self, chat_id: int) -> None:
        self._subscribed.add(chat_id)

    def remove_subscriber(self, chat_id: int) -> None:
        self._subscribed.discard(chat_id)

    def is_subscribed(self, chat_id: int) -> bool:
        return chat_id in self._subscribed

    def subscribers(self) -> list[int]:
        return list(self._subscribed)
