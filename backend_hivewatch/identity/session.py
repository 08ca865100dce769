"""
Login session against an external signer (browser wallet extension).

The signer signs a one-time challenge with the account's posting key and
answers with a boolean. This module never sees keys or signatures; it only
decides whether a username becomes the trusted, tracked account.
Any non-approval or error leaves the session unauthenticated.
"""

from __future__ import annotations

import secrets
from typing import Callable, Protocol

from backend_hivewatch.chain_reader import ChainReader
from backend_hivewatch.core.exceptions import NotFoundError
from backend_hivewatch.hivewatch_logging import get_logger

logger = get_logger(__name__)

CHALLENGE_PREFIX = "Login verification for Hive Analytics: "
KEY_TYPE_POSTING = "Posting"


class Signer(Protocol):
    async def sign_buffer(self, username: str, message: str, key_type: str) -> bool: ...


def make_challenge() -> str:
    return CHALLENGE_PREFIX + secrets.token_hex(8)


class IdentitySession:
    """Holds the authenticated username; notifies a listener on login/logout."""

    def __init__(
        self,
        reader: ChainReader,
        *,
        on_change: Callable[[str | None], None] | None = None,
    ) -> None:
        self._reader = reader
        self._on_change = on_change
        self._username: str | None = None

    @property
    def username(self) -> str | None:
        return self._username

    @property
    def is_authenticated(self) -> bool:
        return self._username is not None

    async def login(self, username: str, signer: Signer) -> bool:
        """
        Verify the account exists, ask the signer to sign a fresh challenge,
        and accept the username only on explicit approval.
        """
        name = username.strip().lstrip("@").lower()
        if not name:
            self._set(None)
            return False
        try:
            await self._reader.get_account(name)
            approved = await signer.sign_buffer(name, make_challenge(), KEY_TYPE_POSTING)
        except NotFoundError:
            logger.warning("identity_login_failed", account=name, reason="account_not_found")
            self._set(None)
            return False
        except Exception as e:
            logger.warning("identity_login_failed", account=name, reason="signer_error", error=str(e))
            self._set(None)
            return False
        if approved is not True:
            logger.info("identity_login_rejected", account=name)
            self._set(None)
            return False
        logger.info("identity_login_succeeded", account=name)
        self._set(name)
        return True

    def logout(self) -> None:
        if self._username is not None:
            logger.info("identity_logout", account=self._username)
        self._set(None)

    def _set(self, username: str | None) -> None:
        changed = username != self._username
        self._username = username
        if changed and self._on_change is not None:
            self._on_change(username)
