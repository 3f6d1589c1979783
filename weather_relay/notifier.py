import asyncio
import logging

from .weather_client import WeatherClientError, fetch_weather, format_weather_message

logger = logging.getLogger(__name__)


class WeatherNotifier:
    def __init__(self, bot, state, admin, default_city: str):
        self.bot = bot
        self.state = state
        self.admin = admin
        self.default_city = default_city
        self._in_flight = False

    async def send_weather_update(self, chat_id: int, city: str) -> bool:
        api_key = self.admin.get_api_key()

        try:
            logger.info(f"Fetching weather data for {city}...")
            weather = await fetch_weather(city, api_key)
        except WeatherClientError as e:
            logger.error(f"Failed to fetch weather data for {city} (chat {chat_id}): {e}")
            return False

        try:
            await self.bot.send_message(chat_id, format_weather_message(weather))
        except Exception as e:
            logger.exception(f"Failed to send weather for {city} to chat {chat_id}: {e}")
            return False

        logger.info(f"Weather data for {city} sent to chat {chat_id}")
        return True

    async def send_weather_updates_to_all(self) -> int:
        """Push the default city's weather to every subscribed chat.

        Chats are served concurrently and independently. A firing that
        arrives while the previous cycle is still running is skipped.
        """
        if self._in_flight:
            logger.warning("Previous weather broadcast still running, skipping this one")
            return 0

        self._in_flight = True
        try:
            chat_ids = self.state.subscribers()
            logger.info(f"Sending weather updates to {len(chat_ids)} subscribed users...")
            results = await asyncio.gather(
                *(self.send_weather_update(chat_id, self.default_city) for chat_id in chat_ids),
                return_exceptions=True,
            )
            for chat_id, result in zip(chat_ids, results):
                if isinstance(result, Exception):
                    logger.error(f"Weather update for chat {chat_id} failed: {result!r}")
            sent = sum(1 for ok in results if ok is True)
            logger.info(f"Weather updates sent: {sent}/{len(chat_ids)}")
            return sent
        finally:
            self._in_flight = False
