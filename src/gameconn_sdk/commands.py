from __future__ import annotations

from dataclasses import dataclass

from .exceptions import InvalidCommandError

LOGIN = "index.login"
SERVER_INFO = "config.getServerInfo"
TOKEN = "1000"


@dataclass(frozen=True)
class Command:
    """A ``control.func`` RPC name; ``control`` is optional."""

    func: str
    control: str | None = None

    @classmethod
    def parse(cls, name: str | None) -> Command:
        name = name or LOGIN
        control, sep, func = name.partition(".")
        if not sep:
            control, func = "", name
        if not func:
            raise InvalidCommandError(
                code="INVALID_COMMAND",
                message=f"Command {name!r} has no function name",
            )
        return cls(func=func, control=control or None)

    @property
    def qualified(self) -> str:
        return f"{self.control}.{self.func}" if self.control else self.func
