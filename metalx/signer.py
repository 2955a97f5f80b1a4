"""
MetalX request signing 🔐

signature = HMAC-SHA256(secret, nonce + apiKey + user), hex encoded, sent as
MX-API-KEY / MX-API-USER / MX-SIGNATURE / MX-NONCE headers.
"""

from __future__ import annotations

import hashlib
import hmac
import threading
import time
from typing import Dict, Optional

from .errors import ConfigurationError


class NonceSource:
    """
    Millisecond nonces that strictly increase across every caller in the
    process, even when two requests land in the same millisecond.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last = 0

    def _now(self) -> int:
        return int(time.time() * 1000)

    def __call__(self) -> int:
        with self._lock:
            nonce = max(self._now(), self._last + 1)
            self._last = nonce
            return nonce


_nonces = NonceSource()


class Signer:
    def __init__(self, api_key: str, secret_key: str, uid: str, nonce_source: Optional[NonceSource] = None):
        self.api_key = api_key or ""
        self.uid = uid or ""
        self._secret = (secret_key or "").encode("utf-8")
        self._nonce = nonce_source or _nonces

    def check_credentials(self) -> None:
        missing = [
            name for name, value in (("api_key", self.api_key), ("secret_key", self._secret), ("uid", self.uid))
            if not value
        ]
        if missing:
            raise ConfigurationError(f"metalx requires {', '.join(missing)} for private requests")

    def nonce(self) -> int:
        return self._nonce()

    def signature(self, nonce: int | str) -> str:
        auth = f"{nonce}{self.api_key}{self.uid}"
        return hmac.new(self._secret, auth.encode("utf-8"), hashlib.sha256).hexdigest()

    def headers(self, nonce: Optional[int] = None) -> Dict[str, str]:
        self.check_credentials()
        if nonce is None:
            nonce = self.nonce()
        return {
            "MX-API-KEY": self.api_key,
            "MX-API-USER": self.uid,
            "MX-SIGNATURE": self.signature(nonce),
            "MX-NONCE": str(nonce),
        }
