"""
Flow routers map callback commands, slash commands and dialog steps to handlers.

Flows are split into one router per area and included into the engine,
the same way aiogram routers are included into a dispatcher.
"""
from typing import Awaitable, Callable, Dict, Type

from finbot.dialog.callbacks import CallbackCommand
from finbot.dialog.state import Step

Handler = Callable[..., Awaitable[None]]


class FlowRouter:
    def __init__(self, name: str):
        self.name = name
        self.actions: Dict[str, Handler] = {}
        self.callbacks: Dict[Type[CallbackCommand], Handler] = {}
        self.steps: Dict[Step, Handler] = {}
        self.commands: Dict[str, Handler] = {}

    def action(self, *names: str):
        """Handler for parameterless buttons: handler(ctx, action)"""
        return self._register(self.actions, names)

    def callback(self, *command_types: Type[CallbackCommand]):
        """Handler for typed callback commands: handler(ctx, command)"""
        return self._register(self.callbacks, command_types)

    def step(self, *steps: Step):
        """Handler for text typed while in one of the steps: handler(ctx, text)"""
        return self._register(self.steps, steps)

    def command(self, *names: str):
        """Handler for slash commands: handler(ctx, text)"""
        return self._register(self.commands, names)

    def _register(self, table: dict, keys):
        def decorator(handler: Handler) -> Handler:
            for key in keys:
                if key in table:
                    raise ValueError(f"{self.name}: duplicate handler for {key!r}")
                table[key] = handler
            return handler
        return decorator
