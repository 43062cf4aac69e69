"""Shared fixtures: a frozen clock and an in-memory store that honours TTLs against it."""
import pytest

from livetrack.config import Settings

T0 = 1_700_000_000


class FakeClock:
    def __init__(self, start: int = T0) -> None:
        self.current = start

    def now(self) -> int:
        return self.current

    def advance(self, seconds: int) -> None:
        self.current += seconds


class FakeStore:
    """KeyValueStore kept in a dict. Keys vanish once their TTL has elapsed on the clock."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.data: dict[str, tuple[str, int]] = {}
        self.ops: list[tuple[str, str]] = []

    async def get(self, key):
        entry = self.data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self.clock.now():
            del self.data[key]
            return None
        return value.encode()

    async def set(self, key, value, ttl):
        assert ttl > 0
        self.ops.append(("set", key))
        self.data[key] = (value, self.clock.now() + ttl)

    async def delete(self, key):
        self.ops.append(("delete", key))
        self.data.pop(key, None)

    def seed(self, key, value="x", ttl=3600) -> None:
        self.data[key] = (value, self.clock.now() + ttl)

    def live_keys(self) -> "set[str]":
        return {k for k, (_, exp) in self.data.items() if exp > self.clock.now()}


@pytest.fixture
def clock(monkeypatch):
    c = FakeClock()
    monkeypatch.setattr("livetrack.clock.now", c.now)
    return c


@pytest.fixture
def store(clock):
    return FakeStore(clock)


@pytest.fixture
def config():
    return Settings(KEY_PREFIX="test", MAX_CACHED_POINTS=3, ID_MAX_ATTEMPTS=8, PUBLIC_URL="https://maps.example/")


@pytest.fixture
def make_session(store, config):
    """Factory for saved sessions: await make_session(expire=..., interval=...)."""
    from livetrack.services.sessions import SessionRecord

    async def _make(expire: int, interval: float = 5) -> SessionRecord:
        session = await SessionRecord.create(store, config)
        session.expire = expire
        session.interval = interval
        await session.save()
        return session

    return _make
