from aiogram import Dispatcher

from .handlers import CommandDispatcher, create_router


def create_dispatcher(command_dispatcher: CommandDispatcher) -> Dispatcher:
    dp = Dispatcher()
    dp.include_router(create_router(command_dispatcher))
    return dp
