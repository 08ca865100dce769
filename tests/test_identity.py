"""
Tests for IdentitySession login against an external signer.
"""

from __future__ import annotations

import asyncio

from backend_hivewatch.identity import IdentitySession
from backend_hivewatch.identity.session import CHALLENGE_PREFIX, make_challenge
from hive_fakes import make_account


class StubSigner:
    def __init__(self, answer=True, error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.messages: list[str] = []

    async def sign_buffer(self, username: str, message: str, key_type: str):
        self.messages.append(message)
        if self.error is not None:
            raise self.error
        return self.answer


def _session(reader):
    changes: list[str | None] = []
    return IdentitySession(reader, on_change=changes.append), changes


def test_challenge_is_unique_and_prefixed():
    a, b = make_challenge(), make_challenge()
    assert a.startswith(CHALLENGE_PREFIX)
    assert a != b
    assert len(a) == len(CHALLENGE_PREFIX) + 16


def test_approved_login_sets_username(chain, reader):
    chain.accounts["alice"] = make_account("alice")
    session, changes = _session(reader)
    signer = StubSigner(True)
    assert asyncio.run(session.login(" @Alice ", signer)) is True
    assert session.username == "alice"
    assert session.is_authenticated
    assert changes == ["alice"]
    assert signer.messages[0].startswith(CHALLENGE_PREFIX)


def test_rejected_login_stays_unauthenticated(chain, reader):
    chain.accounts["alice"] = make_account("alice")
    session, changes = _session(reader)
    assert asyncio.run(session.login("alice", StubSigner(False))) is False
    assert session.username is None
    assert changes == []


def test_truthy_non_boolean_answer_is_rejected(chain, reader):
    chain.accounts["alice"] = make_account("alice")
    session, _ = _session(reader)
    assert asyncio.run(session.login("alice", StubSigner({"success": True}))) is False


def test_signer_error_is_a_rejection(chain, reader):
    chain.accounts["alice"] = make_account("alice")
    session, _ = _session(reader)
    assert asyncio.run(session.login("alice", StubSigner(error=RuntimeError("extension missing")))) is False
    assert not session.is_authenticated


def test_unknown_account_never_reaches_signer(reader):
    session, _ = _session(reader)
    signer = StubSigner(True)
    assert asyncio.run(session.login("nobody", signer)) is False
    assert signer.messages == []


def test_failed_login_logs_out_previous_user(chain, reader):
    chain.accounts["alice"] = make_account("alice")
    session, changes = _session(reader)
    asyncio.run(session.login("alice", StubSigner(True)))
    asyncio.run(session.login("alice", StubSigner(False)))
    assert session.username is None
    assert changes == ["alice", None]


def test_logout(chain, reader):
    chain.accounts["alice"] = make_account("alice")
    session, changes = _session(reader)
    asyncio.run(session.login("alice", StubSigner(True)))
    session.logout()
    session.logout()
    assert changes == ["alice", None]
