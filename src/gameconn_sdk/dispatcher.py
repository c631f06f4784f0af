from __future__ import annotations

import json
import logging
from typing import Any, Mapping
from urllib.parse import quote

from pydantic import ValidationError

from .commands import SERVER_INFO, Command
from .exceptions import TransportError, UnsupportedTransportError
from .http_client import JSON_HEADERS
from .models import CommMode, RpcEnvelope, ServerAssignment, describe_return_code
from .state import SessionState
from .status import CommStatus

logger = logging.getLogger(__name__)

RPC_ENDPOINT = "index.html"
# characters encodeURIComponent leaves alone
_URI_SAFE = "-_.!~*'()"


def _encode_value(value: Any) -> str:
    if isinstance(value, str):
        text = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        text = str(value)
    else:
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return quote(text, safe=_URI_SAFE)


def encode_query(params: Mapping[str, Any]) -> str:
    return "&".join(f"{quote(str(key), safe=_URI_SAFE)}={_encode_value(value)}" for key, value in params.items())


def parse_envelope(payload: Any) -> RpcEnvelope | None:
    if not isinstance(payload, Mapping) or "code" not in payload:
        return None
    try:
        return RpcEnvelope.model_validate(payload)
    except ValidationError:
        return None


class RpcDispatcher:
    """Builds RPC envelopes for a session and sends them over GET or POST."""

    def __init__(self, state: SessionState) -> None:
        self.state = state

    def build_url(self, auth_control: str | None = None, port: int | None = None, *, bootstrap: bool = False) -> str:
        config = self.state.config.original if bootstrap else self.state.config.working
        return f"{config.url_scheme}://{config.host}:{port or config.port}/{auth_control or RPC_ENDPOINT}"

    def prepare(self, params: Mapping[str, Any]) -> dict[str, Any]:
        payload = dict(params)
        command = Command.parse(payload.pop("func", None))
        payload.pop("control", None)
        payload["func"] = command.func
        if command.control:
            payload["control"] = command.control
        payload["oemInfo"] = self.state.identity.snapshot()
        return payload

    async def get_request(
        self,
        params: Mapping[str, Any],
        auth_control: str | None = None,
        port: int | None = None,
        *,
        bootstrap: bool = False,
    ) -> Any:
        payload = self.prepare(params)
        url = self.build_url(auth_control, port, bootstrap=bootstrap)
        return await self._send(CommMode.GET, f"{url}?{encode_query(payload)}", payload)

    async def post_request(
        self,
        params: Mapping[str, Any],
        auth_control: str | None = None,
        port: int | None = None,
    ) -> Any:
        payload = self.prepare(params)
        url = self.build_url(auth_control, port)
        return await self._send(CommMode.POST, url, payload, body=json.dumps(payload, ensure_ascii=False))

    async def fetching(self, params: Mapping[str, Any]) -> Any:
        mode = self.state.mode
        if mode not in (CommMode.GET, CommMode.POST):
            raise UnsupportedTransportError(
                code="UNSUPPORTED_TRANSPORT",
                message=f"Transport mode {mode.value!r} is not implemented",
                details={"mode": mode.value},
            )

        if self.state.pending(CommStatus.REQUIRES_LB, CommStatus.LB):
            if not await self.set_lb():
                logger.warning("lb_preflight_failed", extra={"host": self.state.config.working.host})

        if mode is CommMode.GET:
            return await self.get_request(params)
        return await self.post_request(params)

    async def set_lb(self, force: bool = False) -> bool:
        state = self.state
        if not state.identity.is_bound:
            logger.info("lb_skipped", extra={"reason": "no_identity"})
            return False
        if not force and state.progress.check(CommStatus.LB):
            return True

        # the open id was the input to this pass and stays valid; everything else reruns
        state.clear_cache()
        state.progress.init(state.progress.value & CommStatus.OPEN_ID)
        state.config.reset()

        payload = await self.get_request({"func": SERVER_INFO}, bootstrap=True)
        envelope = parse_envelope(payload)
        if envelope is None or not envelope.ok:
            logger.warning(
                "lb_failed",
                extra={"return_code": describe_return_code(envelope.code if envelope else None)},
            )
            return False
        try:
            assignment = ServerAssignment.model_validate(envelope.data or {})
        except ValidationError:
            logger.warning("lb_failed", extra={"return_code": "InvalidAssignment"})
            return False

        state.progress.set(CommStatus.LB)
        state.config.locate(assignment.ip, assignment.port)
        logger.info("lb_assigned", extra={"host": assignment.ip, "port": assignment.port})
        return True

    async def _send(self, mode: CommMode, url: str, payload: Mapping[str, Any], body: str | None = None) -> Any:
        endpoint = url.split("?", 1)[0]
        headers = dict(JSON_HEADERS)
        logger.debug("rpc_request", extra={"mode": mode.value, "endpoint": endpoint, "func": payload.get("func")})
        try:
            if mode is CommMode.GET:
                return await self.state.http.get(url, headers)
            return await self.state.http.post(url, body or "{}", headers)
        except TransportError as exc:
            logger.warning(
                "transport_failure",
                extra={"mode": mode.value, "endpoint": endpoint, "error_code": exc.code},
            )
            raise
