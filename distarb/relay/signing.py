"""Flashbots request signing (``X-Flashbots-Signature``)."""

from __future__ import annotations

from typing import Dict, Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import keccak

SIGNATURE_HEADER = "X-Flashbots-Signature"


class FlashbotsSigner:
    """Signs relay request bodies with a searcher identity key.

    Without a key a throwaway account is generated; the relay only uses the
    identity for reputation, it never holds funds.
    """

    def __init__(self, private_key: Optional[str] = None) -> None:
        self._private_key = private_key
        self._cached = None

    @property
    def _account(self):
        # created on first use so a bad key surfaces after input verification
        if self._cached is None:
            self._cached = Account.from_key(self._private_key) if self._private_key else Account.create()
        return self._cached

    @property
    def address(self) -> str:
        return self._account.address

    def sign(self, body: str) -> str:
        digest = "0x" + keccak(text=body).hex()
        signed = Account.sign_message(encode_defunct(text=digest), private_key=self._account.key)
        return f"{self._account.address}:0x{bytes(signed.signature).hex()}"

    def headers(self, body: str) -> Dict[str, str]:
        return {SIGNATURE_HEADER: self.sign(body)}


__all__ = ["FlashbotsSigner", "SIGNATURE_HEADER"]
