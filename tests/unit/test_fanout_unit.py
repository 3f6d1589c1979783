import asyncio

import pytest

import weather_relay.notifier as notifier_module
from weather_relay.models import User
from weather_relay.notifier import WeatherNotifier
from weather_relay.subscriptions import SubscriptionState
from weather_relay.weather_client import Weather, WeatherClientError


class FakeBot:
    def __init__(self, failing_chats=()):
        self.messages = []
        self.failing_chats = set(failing_chats)

    async def send_message(self, chat_id, text, parse_mode=None):
        if chat_id in self.failing_chats:
            raise RuntimeError("Forbidden: bot was blocked by the user")
        self.messages.append({"chat_id": chat_id, "text": text})


class FakeAdmin:
    def __init__(self, api_key="test-key"):
        self.api_key = api_key

    def get_api_key(self):
        return self.api_key


class FakeUserService:
    def __init__(self, users):
        self.users = users

    async def get_users(self):
        return self.users


async def make_state(chat_ids, cities=None):
    cities = cities or {}
    users = [User(chat_id=c, first_name=f"user{c}", city=cities.get(c)) for c in chat_ids]
    state = SubscriptionState(FakeUserService(users))
    await state.initialize()
    return state


@pytest.mark.asyncio
async def test_fan_out_requests_default_city_for_every_chat(monkeypatch):
    state = await make_state([1, 2, 3], cities={1: "Berlin", 2: "Paris", 3: "Rome"})
    requested = []

    async def fake_fetch_weather(city, api_key, client=None):
        requested.append((city, api_key))
        return Weather(city=city, description="clear sky", temperature_celsius=20.0)

    monkeypatch.setattr(notifier_module, "fetch_weather", fake_fetch_weather)

    bot = FakeBot()
    notifier = WeatherNotifier(bot, state, FakeAdmin(), "DefaultCity")

    sent = await notifier.send_weather_updates_to_all()

    assert sent == 3
    assert requested == [("DefaultCity", "test-key")] * 3
    assert sorted(m["chat_id"] for m in bot.messages) == [1, 2, 3]
    assert all(m["text"].startswith("Weather in DefaultCity:") for m in bot.messages)


@pytest.mark.asyncio
async def test_one_fetch_failure_does_not_abort_fan_out(monkeypatch):
    state = await make_state([10, 20, 30, 40])
    calls = []

    async def flaky_fetch_weather(city, api_key, client=None):
        calls.append(city)
        if len(calls) == 2:
            raise WeatherClientError("Weather API returned 503")
        return Weather(city=city, description="mist", temperature_celsius=3.5)

    monkeypatch.setattr(notifier_module, "fetch_weather", flaky_fetch_weather)

    bot = FakeBot()
    notifier = WeatherNotifier(bot, state, FakeAdmin(), "DefaultCity")

    sent = await notifier.send_weather_updates_to_all()

    assert len(calls) == 4
    assert sent == 3
    assert len(bot.messages) == 3


@pytest.mark.asyncio
async def test_send_failure_does_not_abort_fan_out(monkeypatch):
    state = await make_state([1, 2, 3])

    async def fake_fetch_weather(city, api_key, client=None):
        return Weather(city=city, description="snow", temperature_celsius=-4.25)

    monkeypatch.setattr(notifier_module, "fetch_weather", fake_fetch_weather)

    bot = FakeBot(failing_chats={2})
    notifier = WeatherNotifier(bot, state, FakeAdmin(), "DefaultCity")

    sent = await notifier.send_weather_updates_to_all()

    assert sent == 2
    assert sorted(m["chat_id"] for m in bot.messages) == [1, 3]


@pytest.mark.asyncio
async def test_fetch_failure_sends_nothing_to_chat(monkeypatch):
    state = await make_state([5])

    async def failing_fetch_weather(city, api_key, client=None):
        raise WeatherClientError("Weather API returned 401")

    monkeypatch.setattr(notifier_module, "fetch_weather", failing_fetch_weather)

    bot = FakeBot()
    notifier = WeatherNotifier(bot, state, FakeAdmin(), "DefaultCity")

    assert await notifier.send_weather_update(5, "Berlin") is False
    assert bot.messages == []


@pytest.mark.asyncio
async def test_overlapping_fan_out_is_skipped(monkeypatch):
    state = await make_state([1, 2])
    release = asyncio.Event()

    async def slow_fetch_weather(city, api_key, client=None):
        await release.wait()
        return Weather(city=city, description="clouds", temperature_celsius=12.0)

    monkeypatch.setattr(notifier_module, "fetch_weather", slow_fetch_weather)

    bot = FakeBot()
    notifier = WeatherNotifier(bot, state, FakeAdmin(), "DefaultCity")

    first = asyncio.create_task(notifier.send_weather_updates_to_all())
    await asyncio.sleep(0)

    assert await notifier.send_weather_updates_to_all() == 0

    release.set()
    assert await first == 2
    assert len(bot.messages) == 2

    # the guard is released once the cycle finishes
    assert await notifier.send_weather_updates_to_all() == 2


@pytest.mark.asyncio
async def test_fan_out_with_no_subscribers(monkeypatch):
    state = await make_state([])

    async def unexpected_fetch(city, api_key, client=None):
        raise AssertionError("no fetch expected")

    monkeypatch.setattr(notifier_module, "fetch_weather", unexpected_fetch)

    notifier = WeatherNotifier(FakeBot(), state, FakeAdmin(), "DefaultCity")

    assert await notifier.send_weather_updates_to_all() == 0


@pytest.mark.asyncio
async def test_unexpected_error_for_one_chat_does_not_abort_fan_out(monkeypatch):
    state = await make_state([1, 2, 3])
    calls = []
    release = asyncio.Event()

    async def erratic_fetch_weather(city, api_key, client=None):
        calls.append(city)
        if len(calls) == 1:
            raise KeyError("main")
        await release.wait()
        return Weather(city=city, description="haze", temperature_celsius=18.0)

    monkeypatch.setattr(notifier_module, "fetch_weather", erratic_fetch_weather)

    bot = FakeBot()
    notifier = WeatherNotifier(bot, state, FakeAdmin(), "DefaultCity")

    cycle = asyncio.create_task(notifier.send_weather_updates_to_all())
    for _ in range(3):
        await asyncio.sleep(0)

    # still in flight while the remaining sends are pending
    assert await notifier.send_weather_updates_to_all() == 0

    release.set()
    assert await cycle == 2
    assert len(bot.messages) == 2
