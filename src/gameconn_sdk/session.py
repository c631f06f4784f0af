from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from pydantic import ValidationError

from .commands import TOKEN
from .config import ConnectorConfig
from .dispatcher import RpcDispatcher, parse_envelope
from .error_mapper import map_login_failure
from .exceptions import LoginError, LoginErrorKind
from .http_client import HttpExecutor
from .models import CommMode, IdentityState, OpenIdGrant, TokenGrant
from .state import SessionState
from .status import CommStatus, StatusFlags

logger = logging.getLogger(__name__)

DOMAIN_KEY_EXCHANGE = "authwx"
DOMAIN_TWO_STEP = "auth2step"

_DOMAIN_REQUIREMENTS: dict[str, tuple[tuple[str, ...], CommStatus]] = {
    DOMAIN_KEY_EXCHANGE: (("openkey",), CommStatus.REQUIRES_LB | CommStatus.REQUIRES_OPEN_ID),
    DOMAIN_TWO_STEP: (("openid", "addrType", "address"), CommStatus.REQUIRES_LB | CommStatus.REQUIRES_SIGN),
}


class LoginOutcome(str, Enum):
    ALREADY_LOGGED_IN = "already_logged_in"
    NOT_READY = "not_ready"
    AWAITING_CODE = "awaiting_code"
    LOGGED_IN = "logged_in"
    NOT_LOGGED_IN = "not_logged_in"

    @property
    def succeeded(self) -> bool:
        return self in {LoginOutcome.ALREADY_LOGGED_IN, LoginOutcome.AWAITING_CODE, LoginOutcome.LOGGED_IN}


@dataclass(frozen=True)
class LoginResult:
    outcome: LoginOutcome | None = None
    error: LoginError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.outcome is not None and self.outcome.succeeded

    @property
    def error_kind(self) -> LoginErrorKind | None:
        return self.error.kind if self.error else None


def requirements_for(domain: str) -> CommStatus:
    """Requirement mask for a login domain; raises UnknownDomainError for anything else."""
    try:
        return _DOMAIN_REQUIREMENTS[domain][1]
    except KeyError:
        raise map_login_failure(LoginErrorKind.UNKNOWN_DOMAIN, details={"domain": domain}) from None


class GameConnector:
    """Login state machine and RPC entry point for one player session.

    Steps run in a fixed order (open id exchange, load balancing, signature
    request, token issuance), each only when the domain requires it and it
    has not completed yet. The two-step domain suspends after the signature
    request; supply the out-of-band code with ``set_sign`` and call
    ``login()`` again to finish.

    Overlapping calls on one connector are not isolated: await each call
    before issuing the next. Connectors created with ``new()`` share no
    mutable state.
    """

    def __init__(
        self,
        config: ConnectorConfig,
        mode: CommMode | None = None,
        executor: HttpExecutor | None = None,
    ) -> None:
        self._state = SessionState.create(config, mode)
        self._state.executor = executor
        self._dispatcher = RpcDispatcher(self._state)

    @property
    def identity(self) -> IdentityState:
        return self._state.identity

    @property
    def status(self) -> StatusFlags:
        return self._state.progress

    @property
    def requirements(self) -> StatusFlags:
        return self._state.requirements

    @property
    def mode(self) -> CommMode:
        return self._state.mode

    @property
    def original_config(self) -> ConnectorConfig:
        return self._state.config.original

    @property
    def working_config(self) -> ConnectorConfig:
        return self._state.config.working

    @property
    def dispatcher(self) -> RpcDispatcher:
        return self._dispatcher

    def new(self) -> GameConnector:
        return GameConnector(self._state.config.original, mode=self._state.mode)

    def set_mode(self, mode: CommMode) -> GameConnector:
        self._state.mode = CommMode(mode)
        return self

    def set_executor(self, executor: HttpExecutor | None) -> GameConnector:
        self._state.executor = executor
        return self

    def locate(self, host: str, port: int) -> GameConnector:
        self._state.config.locate(host, port)
        return self

    def clear_cache(self) -> None:
        self._state.clear_cache()

    def reset(self) -> GameConnector:
        """Drop identity, progress, requirements and any load-balancer redirect."""
        self._state.reset()
        return self

    def set_user_info(self, values: Mapping[str, Any], requirements: int | None = None) -> GameConnector:
        self._state.clear_cache()
        if requirements:
            self._state.requirements.init(requirements)
        self._state.identity.merge(values)
        return self

    def set_sign(self, code: str) -> GameConnector:
        if not self._state.requirements.check(CommStatus.REQUIRES_SIGN):
            logger.warning("sign_code_ignored", extra={"reason": "sign_not_required"})
            return self
        self._state.identity.openkey = code
        self._state.progress.set(CommStatus.SIGN_CODE)
        return self

    async def on_auth_code(self, code: str) -> LoginOutcome:
        return await self.set_sign(code).login()

    async def fetching(self, params: Mapping[str, Any]) -> Any:
        return await self._dispatcher.fetching(params)

    async def set_lb(self, force: bool = False) -> bool:
        return await self._dispatcher.set_lb(force)

    async def get_open_id(self) -> bool:
        identity = self._state.identity
        config = self._state.config.original
        payload = await self._dispatcher.get_request(
            {"openkey": identity.openkey},
            auth_control=identity.domain,
            port=config.auth_port or config.port,
            bootstrap=True,
        )
        try:
            grant = OpenIdGrant.model_validate(payload)
        except ValidationError:
            return False
        identity.openid = grant.unionid
        return True

    async def get_sign(self) -> bool:
        identity = self._state.identity
        payload = await self._dispatcher.get_request(
            {"openid": identity.openid, "addrType": identity.addr_type, "address": identity.address},
            auth_control=identity.domain,
        )
        envelope = parse_envelope(payload)
        if not payload or (envelope is not None and not envelope.ok):
            return False
        identity.auth = payload
        return True

    async def get_token(self) -> bool:
        state = self._state
        if (
            not state.identity.is_bound
            or state.pending(CommStatus.REQUIRES_LB, CommStatus.LB)
            or state.pending(CommStatus.REQUIRES_SIGN, CommStatus.SIGN_CODE)
            or state.progress.check(CommStatus.LOGGED_IN)
        ):
            return False

        envelope = parse_envelope(await self.fetching({"func": TOKEN}))
        if envelope is None or not envelope.ok or not envelope.data:
            logger.info("token_rejected", extra={"return_code": envelope.code if envelope else None})
            return False
        try:
            grant = TokenGrant.model_validate(envelope.data)
        except ValidationError:
            logger.info("token_rejected", extra={"return_code": envelope.code})
            return False

        state.identity.merge({"openid": grant.openid, "id": grant.id, "token": grant.token, "name": grant.name})
        state.progress.set(CommStatus.LOGGED_IN)
        logger.info("login_success", extra={"domain": state.identity.domain, "user_id": grant.id})
        return True

    async def login(self, domain: str | None = None, *, force: bool = False, **credentials: Any) -> LoginOutcome:
        state = self._state
        # validated before touching any state
        requirements = requirements_for(domain) if domain else None

        if force:
            state.clear_cache()
            state.progress.init()

        if domain and requirements is not None:
            keys = _DOMAIN_REQUIREMENTS[domain][0]
            values = {"domain": domain, **{key: _credential(credentials, key) for key in keys}}
            self.set_user_info(values, requirements)

        if state.progress.check(CommStatus.LOGGED_IN):
            return LoginOutcome.ALREADY_LOGGED_IN
        if not state.identity.is_bound:
            return LoginOutcome.NOT_READY

        logger.info("login_attempt", extra={"domain": state.identity.domain, "status": state.progress.describe()})

        if state.pending(CommStatus.REQUIRES_OPEN_ID, CommStatus.OPEN_ID):
            if not await self.get_open_id():
                raise map_login_failure(LoginErrorKind.KEY_EXCHANGE, details={"domain": state.identity.domain})
            state.progress.set(CommStatus.OPEN_ID)

        if state.pending(CommStatus.REQUIRES_LB, CommStatus.LB):
            if not await self.set_lb():
                raise map_login_failure(LoginErrorKind.LOAD_BALANCE, details={"host": state.config.original.host})

        if state.requirements.check(CommStatus.REQUIRES_SIGN):
            if not state.progress.check(CommStatus.SIGN):
                if not await self.get_sign():
                    raise map_login_failure(LoginErrorKind.SIGN_REQUEST, details={"domain": state.identity.domain})
                state.progress.set(CommStatus.SIGN)
                logger.info("login_awaiting_code", extra={"domain": state.identity.domain})
                return LoginOutcome.AWAITING_CODE
            if not state.progress.check(CommStatus.SIGN_CODE):
                return LoginOutcome.AWAITING_CODE

        if await self.get_token():
            return LoginOutcome.LOGGED_IN
        return LoginOutcome.NOT_LOGGED_IN

    async def attempt_login(self, domain: str | None = None, *, force: bool = False, **credentials: Any) -> LoginResult:
        """Same as ``login`` but reports step failures in the result instead of raising."""
        try:
            outcome = await self.login(domain, force=force, **credentials)
        except LoginError as exc:
            logger.info("login_failure", extra={"error_kind": exc.kind.value})
            return LoginResult(error=exc)
        return LoginResult(outcome=outcome)


def _credential(credentials: Mapping[str, Any], key: str) -> Any:
    if key in credentials:
        return credentials[key]
    if key == "addrType":
        return credentials.get("addr_type")
    return None
