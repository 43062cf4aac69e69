"""Collision-checked generation of share IDs, session IDs and group PINs."""
import hashlib
import logging
import random
import secrets
import string
from typing import Callable

from livetrack.config import Settings, settings
from livetrack.errors import CollisionExhaustion
from livetrack.services.kv_store import KeyValueStore, group_pin_key, session_key, share_key

logger = logging.getLogger(__name__)

SHARE_ID_RAND_BYTES = 32
SESSION_ID_RAND_BYTES = 32
_BASE36 = string.digits + string.ascii_uppercase


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_BASE36[r])
    return "".join(reversed(out))


def random_share_id() -> str:
    """First and last four base36 digits of the SHA-256 of random bytes, e.g. 'AB12-9F3D'."""
    digest = hashlib.sha256(secrets.token_bytes(SHARE_ID_RAND_BYTES)).hexdigest()
    s = _base36(int(digest, 16))
    return f"{s[:4]}-{s[-4:]}"


def random_session_id() -> str:
    return secrets.token_hex(SESSION_ID_RAND_BYTES)


class IdentifierGenerator:
    """Draws candidates and probes the store until one is unused.

    Gives up with CollisionExhaustion after config.ID_MAX_ATTEMPTS probes. Store
    errors are not retried.
    """

    def __init__(self, store: KeyValueStore, config: Settings | None = None) -> None:
        self.store = store
        self.config = config or settings

    async def _probe(self, kind: str, draw: Callable[[], object], key_for: Callable[[object], str]):
        for attempt in range(1, self.config.ID_MAX_ATTEMPTS + 1):
            candidate = draw()
            if await self.store.get(key_for(candidate)) is None:
                return candidate
            logger.debug("%s candidate collided (attempt %d)", kind, attempt)
        logger.warning("No free %s after %d attempts", kind, self.config.ID_MAX_ATTEMPTS)
        raise CollisionExhaustion(f"No free {kind} after {self.config.ID_MAX_ATTEMPTS} attempts")

    async def new_share_id(self) -> str:
        prefix = self.config.KEY_PREFIX
        return await self._probe("share ID", random_share_id, lambda c: share_key(prefix, c))

    async def new_session_id(self) -> str:
        prefix = self.config.KEY_PREFIX
        return await self._probe("session ID", random_session_id, lambda c: session_key(prefix, c))

    async def new_group_pin(self) -> int:
        # Not a secret, only a short code to type in, so the stdlib PRNG is enough.
        lo, hi = self.config.GROUP_PIN_MIN, self.config.GROUP_PIN_MAX
        prefix = self.config.KEY_PREFIX
        return await self._probe("group PIN", lambda: random.randint(lo, hi), lambda c: group_pin_key(prefix, c))
