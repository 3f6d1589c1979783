import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .db import async_session_maker
from .models import AdminSetting

logger = logging.getLogger(__name__)

API_KEY_SETTING = "openweather_api_key"


class AdminService:
    """Holds the weather provider credential.

    The key from the environment is the starting value; a key stored in
    ``admin_settings`` replaces it once ``load()`` has run.
    """

    def __init__(self, api_key: str | None = None, session_maker=None):
        self._api_key = settings.openweather_api_key if api_key is None else api_key
        self._session_maker = session_maker or async_session_maker

    def get_api_key(self) -> str:
        return self._api_key or ""

    async def load(self) -> None:
        try:
            async with self._session_maker() as session:
                stored = await session.scalar(
                    select(AdminSetting).where(AdminSetting.key == API_KEY_SETTING)
                )
        except SQLAlchemyError as e:
            logger.exception(f"Could not load stored API key, keeping environment value: {e}")
            return

        if stored is not None and stored.value:
            self._api_key = stored.value
            logger.info("Loaded OpenWeatherMap API key from admin settings")

    async def set_api_key(self, api_key: str) -> bool:
        api_key = (api_key or "").strip()
        if not api_key:
            raise ValueError("API key must not be empty")

        try:
            async with self._session_maker() as session:
                stored = await session.scalar(
                    select(AdminSetting).where(AdminSetting.key == API_KEY_SETTING)
                )
                if stored is None:
                    session.add(AdminSetting(key=API_KEY_SETTING, value=api_key))
                else:
                    stored.value = api_key
                await session.commit()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to store API key: {e}")
            return False

        self._api_key = api_key
        logger.info("OpenWeatherMap API key updated")
        return True
