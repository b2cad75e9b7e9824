"""Per-request handle on the captcha secret stored in the client session.

Sessions are Starlette signed cookies (see ``SessionMiddleware`` in
``legalsite.main``), so the secret travels with the client but cannot be read
or forged without ``SECRET_KEY``. The cookie already expires after
``SESSION_MAX_AGE_SECONDS``; the issue timestamp stored next to the secret
enforces the same bound server-side for clients that keep the cookie around.

Replay: a matched secret stays valid until it expires unless
``CAPTCHA_SINGLE_USE`` is enabled, in which case the contact handler calls
``clear_secret()`` after the first successful check.
"""
import time
from typing import Any, MutableMapping, Optional

from fastapi import Request

from legalsite.core.config import settings

CAPTCHA_KEY = "captcha"
CAPTCHA_ISSUED_AT_KEY = "captcha_issued_at"


class ChallengeSession:
    def __init__(
        self,
        store: MutableMapping[str, Any],
        max_age_seconds: int,
        clock=time.time,
    ) -> None:
        self._store = store
        self._max_age = max_age_seconds
        self._clock = clock

    def get_secret(self) -> Optional[str]:
        secret = self._store.get(CAPTCHA_KEY)
        if not secret:
            return None
        issued_at = self._store.get(CAPTCHA_ISSUED_AT_KEY)
        if issued_at is None or self._clock() - float(issued_at) > self._max_age:
            self.clear_secret()
            return None
        return secret

    def set_secret(self, secret: str) -> None:
        self._store[CAPTCHA_KEY] = secret
        self._store[CAPTCHA_ISSUED_AT_KEY] = self._clock()

    def clear_secret(self) -> None:
        self._store.pop(CAPTCHA_KEY, None)
        self._store.pop(CAPTCHA_ISSUED_AT_KEY, None)


def get_challenge_session(request: Request) -> ChallengeSession:
    return ChallengeSession(request.session, settings.SESSION_MAX_AGE_SECONDS)
