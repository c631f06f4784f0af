from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


@dataclass
class ConnectorError(Exception):
    code: str
    message: str
    details: object | None = None
    status_code: int = 0
    raw_payload: object | None = None

    def __str__(self) -> str:
        status = f"[{self.status_code}] " if self.status_code else ""
        return f"{status}{self.code}: {self.message}"


class TransportError(ConnectorError):
    """Network failure or undecodable body before a usable response was returned."""


class UnsupportedTransportError(ConnectorError):
    pass


class InvalidCommandError(ConnectorError, ValueError):
    pass


class LoginErrorKind(str, Enum):
    UNKNOWN_DOMAIN = "unknown_domain"
    KEY_EXCHANGE = "key_exchange"
    LOAD_BALANCE = "load_balance"
    SIGN_REQUEST = "sign_request"


class LoginError(ConnectorError):
    """A login step could not proceed; calling login() again resumes from the failed step."""

    kind: ClassVar[LoginErrorKind]


class UnknownDomainError(LoginError):
    kind = LoginErrorKind.UNKNOWN_DOMAIN


class KeyExchangeError(LoginError):
    kind = LoginErrorKind.KEY_EXCHANGE


class LoadBalanceError(LoginError):
    kind = LoginErrorKind.LOAD_BALANCE


class SignRequestError(LoginError):
    kind = LoginErrorKind.SIGN_REQUEST
