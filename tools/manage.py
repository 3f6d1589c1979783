import argparse
import asyncio
import sys
from pathlib import Path

# Project root on sys.path so `weather_relay` imports when run as a file:
# python tools/manage.py create-tables
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from weather_relay.admin import AdminService
from weather_relay.db import engine
from weather_relay.models import Base
from weather_relay.users import UserService


async def create_tables() -> int:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("tables created")
    return 0


async def set_api_key(key: str) -> int:
    if not await AdminService().set_api_key(key):
        print("failed to store API key", file=sys.stderr)
        return 1
    print("API key stored")
    return 0


async def list_users() -> int:
    for user in await UserService().get_users():
        print(f"{user.chat_id}\t{user.first_name or ''}\t{user.city or ''}")
    return 0


async def run(args: argparse.Namespace) -> int:
    try:
        if args.command == "create-tables":
            return await create_tables()
        if args.command == "set-api-key":
            return await set_api_key(args.key)
        return await list_users()
    finally:
        await engine.dispose()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Weather relay bot administration")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("create-tables", help="create database tables")
    key_parser = sub.add_parser("set-api-key", help="store the OpenWeatherMap API key")
    key_parser.add_argument("key")
    sub.add_parser("list-users", help="list registered chats")

    return asyncio.run(run(parser.parse_args(argv)))


if __name__ == "__main__":
    raise SystemExit(main())
