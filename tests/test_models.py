from __future__ import annotations

from gameconn_sdk import IdentityState, RpcEnvelope, describe_return_code


def test_merge_overwrites_per_key_and_accepts_wire_names() -> None:
    identity = IdentityState(domain="auth2step", auth={"sig": "a", "nonce": 1})

    identity.merge({"addrType": "email", "address": "a@example.com", "auth": {"sig": "b"}})

    assert identity.addr_type == "email"
    assert identity.address == "a@example.com"
    assert identity.auth == {"sig": "b"}
    assert identity.domain == "auth2step"


def test_snapshot_uses_wire_names_and_skips_empty_fields() -> None:
    identity = IdentityState(domain="authwx", openkey="k1", addr_type="sms")
    identity.merge({"channel": "store"})

    assert identity.snapshot() == {
        "channel": "store",
        "domain": "authwx",
        "openkey": "k1",
        "addrType": "sms",
    }


def test_clear_token_and_binding() -> None:
    identity = IdentityState()
    assert not identity.is_bound

    identity.merge({"domain": "authwx", "token": "tok"})
    identity.clear_token()

    assert identity.is_bound
    assert identity.token is None


def test_envelope_success_flag() -> None:
    assert RpcEnvelope.model_validate({"code": 0, "data": {"x": 1}}).ok
    assert not RpcEnvelope.model_validate({"code": 7}).ok


def test_return_code_names() -> None:
    assert describe_return_code(0) == "Success"
    assert describe_return_code(7) == "Error7"
    assert describe_return_code(None) == "NoResponse"
