from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any

from .config import load_config
from .exceptions import ConnectorError
from .http_client import HttpxExecutor
from .session import DOMAIN_KEY_EXCHANGE, DOMAIN_TWO_STEP, GameConnector


def _connector(args: argparse.Namespace) -> tuple[GameConnector, HttpxExecutor]:
    config = load_config(args.env_file)
    executor = HttpxExecutor(timeout_seconds=config.timeout_seconds, verify_ssl=config.verify_ssl)
    return GameConnector(config, executor=executor), executor


def _summary(connector: GameConnector, outcome: Any) -> dict[str, Any]:
    working = connector.working_config
    return {
        "outcome": outcome.value,
        "status": connector.status.describe(),
        "user": {"id": connector.identity.id, "name": connector.identity.name, "openid": connector.identity.openid},
        "server": f"{working.host}:{working.port}",
    }


async def cmd_login_key(args: argparse.Namespace) -> dict[str, Any]:
    connector, executor = _connector(args)
    try:
        outcome = await connector.login(args.domain, openkey=args.openkey)
        return _summary(connector, outcome)
    finally:
        await executor.aclose()


async def cmd_login_2step(args: argparse.Namespace) -> dict[str, Any]:
    connector, executor = _connector(args)
    try:
        outcome = await connector.login(
            args.domain,
            openid=args.openid,
            addrType=args.addr_type,
            address=args.address,
        )
        if args.code:
            outcome = await connector.on_auth_code(args.code)
        return _summary(connector, outcome)
    finally:
        await executor.aclose()


async def cmd_call(args: argparse.Namespace) -> Any:
    connector, executor = _connector(args)
    params = json.loads(args.params) if args.params else {}
    params["func"] = args.rpc_func
    try:
        return await connector.fetching(params)
    finally:
        await executor.aclose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Game connector smoke CLI")
    parser.add_argument("--env-file", default=None)
    parser.add_argument("--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    key_parser = subparsers.add_parser("login-key")
    key_parser.add_argument("--domain", default=DOMAIN_KEY_EXCHANGE)
    key_parser.add_argument("--openkey", required=True)
    key_parser.set_defaults(func=cmd_login_key)

    two_step_parser = subparsers.add_parser("login-2step")
    two_step_parser.add_argument("--domain", default=DOMAIN_TWO_STEP)
    two_step_parser.add_argument("--openid", required=True)
    two_step_parser.add_argument("--addr-type", required=True)
    two_step_parser.add_argument("--address", required=True)
    two_step_parser.add_argument("--code", default=None)
    two_step_parser.set_defaults(func=cmd_login_2step)

    call_parser = subparsers.add_parser("call")
    call_parser.add_argument("--func", dest="rpc_func", required=True)
    call_parser.add_argument("--params", default=None)
    call_parser.set_defaults(func=cmd_call)

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    try:
        result = asyncio.run(args.func(args))
    except ConnectorError as exc:
        print(json.dumps({"error": exc.code, "message": exc.message}, indent=2))
        raise SystemExit(1) from exc
    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()
