from __future__ import annotations

from typing import Any, Mapping

from .exceptions import (
    KeyExchangeError,
    LoadBalanceError,
    LoginError,
    LoginErrorKind,
    SignRequestError,
    UnknownDomainError,
)
from .models import describe_return_code

_LOGIN_ERRORS: dict[LoginErrorKind, tuple[type[LoginError], str]] = {
    LoginErrorKind.UNKNOWN_DOMAIN: (UnknownDomainError, "Unknown domain name"),
    LoginErrorKind.KEY_EXCHANGE: (KeyExchangeError, "Open key exchange failed"),
    LoginErrorKind.LOAD_BALANCE: (LoadBalanceError, "Load balancing failed"),
    LoginErrorKind.SIGN_REQUEST: (SignRequestError, "Signature request failed"),
}


def map_login_failure(kind: LoginErrorKind, payload: Any = None, *, details: object | None = None) -> LoginError:
    error_type, message = _LOGIN_ERRORS[kind]
    backend_code = payload.get("code") if isinstance(payload, Mapping) else None
    if isinstance(backend_code, int):
        message = f"{message} ({describe_return_code(backend_code)})"
    elif payload is None and kind is not LoginErrorKind.UNKNOWN_DOMAIN:
        message = f"{message} (no response)"
    return error_type(
        code=kind.value.upper(),
        message=message,
        details=details,
        raw_payload=payload,
    )
