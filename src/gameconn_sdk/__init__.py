from .commands import Command
from .config import ConfigError, ConnectorConfig, SessionConfig, load_config
from .exceptions import (
    ConnectorError,
    InvalidCommandError,
    KeyExchangeError,
    LoadBalanceError,
    LoginError,
    LoginErrorKind,
    SignRequestError,
    TransportError,
    UnknownDomainError,
    UnsupportedTransportError,
)
from .http_client import (
    HttpExecutor,
    HttpxExecutor,
    close_default_executor,
    default_executor,
    set_default_executor,
)
from .models import CommMode, IdentityState, ReturnCode, RpcEnvelope, describe_return_code
from .session import (
    DOMAIN_KEY_EXCHANGE,
    DOMAIN_TWO_STEP,
    GameConnector,
    LoginOutcome,
    LoginResult,
    requirements_for,
)
from .status import CommStatus, StatusFlags

__all__ = [
    "Command",
    "CommMode",
    "CommStatus",
    "ConfigError",
    "ConnectorConfig",
    "ConnectorError",
    "DOMAIN_KEY_EXCHANGE",
    "DOMAIN_TWO_STEP",
    "GameConnector",
    "HttpExecutor",
    "HttpxExecutor",
    "IdentityState",
    "InvalidCommandError",
    "KeyExchangeError",
    "LoadBalanceError",
    "LoginError",
    "LoginErrorKind",
    "LoginOutcome",
    "LoginResult",
    "ReturnCode",
    "RpcEnvelope",
    "SessionConfig",
    "SignRequestError",
    "StatusFlags",
    "TransportError",
    "UnknownDomainError",
    "UnsupportedTransportError",
    "close_default_executor",
    "default_executor",
    "describe_return_code",
    "load_config",
    "requirements_for",
    "set_default_executor",
]
