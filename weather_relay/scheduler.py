from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .config import settings

WEATHER_JOB_ID = "hourly_weather_job"


def create_scheduler(notifier, timezone: str | None = None) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=timezone or settings.scheduler_timezone)

    # top of every hour
    scheduler.add_job(
        notifier.send_weather_updates_to_all,
        "cron",
        minute=0,
        id=WEATHER_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    return scheduler
