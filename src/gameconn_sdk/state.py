from __future__ import annotations

from dataclasses import dataclass, field

from .config import ConnectorConfig, SessionConfig
from .http_client import HttpExecutor, default_executor
from .models import CommMode, IdentityState
from .status import CommStatus, StatusFlags


@dataclass
class SessionState:
    config: SessionConfig
    mode: CommMode = CommMode.POST
    executor: HttpExecutor | None = None
    identity: IdentityState = field(default_factory=IdentityState)
    progress: StatusFlags = field(default_factory=StatusFlags)
    requirements: StatusFlags = field(default_factory=StatusFlags)

    @classmethod
    def create(cls, config: ConnectorConfig, mode: CommMode | None = None) -> SessionState:
        return cls(config=SessionConfig(config), mode=mode or config.transport_mode)

    @property
    def http(self) -> HttpExecutor:
        return self.executor or default_executor()

    def pending(self, requirement: CommStatus, progress: CommStatus) -> bool:
        return self.requirements.check(requirement) and not self.progress.check(progress)

    def clear_cache(self) -> None:
        # a session without a token is not logged in
        self.identity.clear_token()
        self.progress.reset(CommStatus.LOGGED_IN)

    def reset(self) -> None:
        self.config.reset()
        self.identity = IdentityState()
        self.progress.init()
        self.requirements.init()
