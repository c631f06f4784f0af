from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlsplit

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
SDK_SRC = BASE_DIR / "src"

sys.path.insert(0, str(SDK_SRC))

from gameconn_sdk import ConnectorConfig, GameConnector  # noqa: E402
from gameconn_sdk.models import CommMode  # noqa: E402


@dataclass
class RecordedCall:
    method: str
    url: str
    headers: dict[str, str]
    body: str | None = None

    @property
    def netloc(self) -> str:
        return urlsplit(self.url).netloc

    @property
    def path(self) -> str:
        return urlsplit(self.url).path.lstrip("/")

    @property
    def params(self) -> dict[str, Any]:
        if self.method == "POST":
            return json.loads(self.body or "{}")
        raw = {key: values[0] for key, values in parse_qs(urlsplit(self.url).query).items()}
        if "oemInfo" in raw:
            raw["oemInfo"] = json.loads(raw["oemInfo"])
        return raw


@dataclass
class FakeExecutor:
    """Replays queued payloads keyed by endpoint path or, for index.html, by func."""

    routes: dict[str, list[Any]] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)
    closed: bool = False

    def route(self, key: str, *payloads: Any) -> FakeExecutor:
        self.routes.setdefault(key, []).extend(payloads)
        return self

    async def get(self, url: str, headers: dict[str, str]) -> Any:
        return self._reply(RecordedCall("GET", url, headers))

    async def post(self, url: str, body: str, headers: dict[str, str]) -> Any:
        return self._reply(RecordedCall("POST", url, headers, body))

    async def aclose(self) -> None:
        self.closed = True

    def calls_for(self, key: str) -> list[RecordedCall]:
        return [call for call in self.calls if _key(call) == key]

    def _reply(self, call: RecordedCall) -> Any:
        self.calls.append(call)
        queue = self.routes.get(_key(call))
        if not queue:
            raise AssertionError(f"unexpected call {call.method} {call.url}")
        payload = queue.pop(0)
        if isinstance(payload, Exception):
            raise payload
        return payload


def _key(call: RecordedCall) -> str:
    if call.path == "index.html":
        return str(call.params.get("func"))
    return call.path


@pytest.fixture
def config() -> ConnectorConfig:
    return ConnectorConfig(host="gate.example.com", port=8080, auth_port=9901)


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def connector(config: ConnectorConfig, executor: FakeExecutor) -> GameConnector:
    return GameConnector(config, mode=CommMode.POST, executor=executor)


LB_OK = {"code": 0, "data": {"ip": "10.0.0.5", "port": 9000}}
TOKEN_OK = {"code": 0, "data": {"openid": "u1", "id": 42, "token": "tok1", "name": "Alice"}}
