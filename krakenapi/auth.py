"""Request signing for private endpoints.

The signature is ``base64(HMAC-SHA512(secret, path + SHA256(nonce + params)))``
where ``secret`` is the base64-decoded API secret and ``params`` is the
serialized parameter string sent as the POST body.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import threading
import time
from typing import Optional

from krakenapi.errors import InvalidSecretKeyError


def generate_nonce() -> str:
    """Wall-clock time in microseconds, as a decimal string."""

    return str(time.time_ns() // 1_000)


class NonceGenerator:
    """Strictly increasing microsecond nonces, safe to share between threads."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        now = time.time_ns() // 1_000
        with self._lock:
            self._last = max(now, self._last + 1)
            return str(self._last)


class KrakenAuth:
    """Holds the API credentials and computes request signatures."""

    def __init__(self, api_key: str, api_secret: str) -> None:
        self.api_key = api_key
        self._api_secret = api_secret
        self._secret_bytes: Optional[bytes] = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self._api_secret)

    def secret_bytes(self) -> bytes:
        if self._secret_bytes is None:
            if not self._api_secret:
                raise InvalidSecretKeyError("API secret is empty")
            try:
                self._secret_bytes = base64.b64decode(self._api_secret, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise InvalidSecretKeyError("API secret is not valid base64") from exc
        return self._secret_bytes

    def sign(self, path: str, nonce: str, params: Optional[str]) -> str:
        """Sign ``path`` for the given nonce and serialized parameters."""

        digest = hashlib.sha256((nonce + (params or "")).encode("utf-8")).digest()
        mac = hmac.new(self.secret_bytes(), path.encode("utf-8") + digest, hashlib.sha512)
        return base64.b64encode(mac.digest()).decode("ascii")

    def __repr__(self) -> str:
        return f"KrakenAuth(api_key={'***' if self.api_key else ''!r})"


__all__ = ["KrakenAuth", "NonceGenerator", "generate_nonce"]
