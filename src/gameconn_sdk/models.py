from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum, IntEnum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict


class CommMode(str, Enum):
    WS = "webSocket"
    GET = "get"
    POST = "post"


class ReturnCode(IntEnum):
    SUCCESS = 0


RETURN_CODE_NAMES: dict[int, str] = {
    ReturnCode.SUCCESS: "Success",
}


def describe_return_code(code: int | None) -> str:
    if code is None:
        return "NoResponse"
    return RETURN_CODE_NAMES.get(code, f"Error{code}")


class RpcEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    code: int
    data: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.code == ReturnCode.SUCCESS


class ServerAssignment(BaseModel):
    ip: str
    port: int


class TokenGrant(BaseModel):
    model_config = ConfigDict(extra="allow")

    openid: str | None = None
    id: int | str | None = None
    token: str
    name: str | None = None


class OpenIdGrant(BaseModel):
    model_config = ConfigDict(extra="allow")

    unionid: str


_WIRE_NAMES = {"addr_type": "addrType"}
_PYTHON_NAMES = {wire: name for name, wire in _WIRE_NAMES.items()}


@dataclass
class IdentityState:
    """Fields accumulated while logging in; sent with every call as ``oemInfo``."""

    domain: str | None = None
    openkey: str | None = None
    openid: str | None = None
    addr_type: str | None = None
    address: str | None = None
    auth: Any = None
    token: str | None = None
    id: int | str | None = None
    name: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def is_bound(self) -> bool:
        return bool(self.domain)

    def merge(self, values: Mapping[str, Any]) -> IdentityState:
        known = {item.name for item in fields(self)} - {"extras"}
        for key, value in values.items():
            name = _PYTHON_NAMES.get(key, key)
            if name in known:
                setattr(self, name, value)
            else:
                self.extras[key] = value
        return self

    def clear_token(self) -> None:
        self.token = None

    def snapshot(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.extras)
        for item in fields(self):
            if item.name == "extras":
                continue
            value = getattr(self, item.name)
            if value is not None:
                payload[_WIRE_NAMES.get(item.name, item.name)] = value
        return payload
