"""Broadcasting sessions: one per device, holding its recent points and the shares it feeds."""
import logging

from livetrack import clock
from livetrack.config import Settings, settings
from livetrack.errors import InvariantViolation
from livetrack.models.session import Point, SessionData
from livetrack.models.share import ShareType
from livetrack.services.identifiers import IdentifierGenerator
from livetrack.services.kv_store import KeyValueStore, session_key, store_until

logger = logging.getLogger(__name__)


class SessionRecord:
    """A device's session. Build with create() or load(); changes persist on save().

    A loaded session that was not found has exists() == False, and every other
    accessor raises InvariantViolation.
    """

    def __init__(
        self,
        store: KeyValueStore,
        session_id: str,
        data: SessionData | None,
        config: Settings | None = None,
    ) -> None:
        self.store = store
        self.session_id = session_id
        self._data = data
        self.config = config or settings

    @classmethod
    async def create(cls, store: KeyValueStore, config: Settings | None = None) -> "SessionRecord":
        config = config or settings
        session_id = await IdentifierGenerator(store, config).new_session_id()
        return cls(store, session_id, SessionData(), config)

    @classmethod
    async def load(cls, store: KeyValueStore, session_id: str, config: Settings | None = None) -> "SessionRecord":
        config = config or settings
        raw = await store.get(session_key(config.KEY_PREFIX, session_id))
        data = SessionData.model_validate_json(raw) if raw else None
        return cls(store, session_id, data, config)

    def exists(self) -> bool:
        return self._data is not None

    @property
    def data(self) -> SessionData:
        if self._data is None:
            raise InvariantViolation(f"Session {self.session_id} does not exist")
        return self._data

    @property
    def key(self) -> str:
        return session_key(self.config.KEY_PREFIX, self.session_id)

    @property
    def expire(self) -> int:
        return self.data.expire

    @expire.setter
    def expire(self, value: int) -> None:
        self.data.expire = value

    @property
    def interval(self) -> float | None:
        return self.data.interval

    @interval.setter
    def interval(self, value: float) -> None:
        self.data.interval = value

    def has_expired(self) -> bool:
        return self.expire <= clock.now()

    def is_live(self) -> bool:
        return self.exists() and not self.has_expired()

    @property
    def points(self) -> list[Point]:
        return list(self.data.points)

    def add_point(self, point: Point) -> "SessionRecord":
        """Append a point, dropping the oldest ones beyond MAX_CACHED_POINTS."""
        points = self.data.points
        points.append(tuple(point))
        overflow = len(points) - self.config.MAX_CACHED_POINTS
        if overflow > 0:
            del points[:overflow]
        return self

    @property
    def target_ids(self) -> list[str]:
        return list(self.data.targets)

    def add_target(self, share_id: str) -> "SessionRecord":
        if share_id not in self.data.targets:
            self.data.targets.append(share_id)
        return self

    def remove_target(self, share_id: str) -> "SessionRecord":
        self.data.targets = [t for t in self.data.targets if t != share_id]
        return self

    async def targets(self) -> list:
        """Load every share this session feeds (missing ones included, as MissingShare)."""
        # shares imports this module.
        from livetrack.services.shares import load_share

        return [await load_share(self.store, share_id, self.config) for share_id in self.data.targets]

    async def save(self) -> "SessionRecord":
        """Persist with TTL = expire - now, or delete the key if already expired."""
        data = self.data
        if data.interval is None:
            raise InvariantViolation("Session interval is undefined")
        if data.expire == 0:
            raise InvariantViolation("Session cannot be indefinite")
        await store_until(self.store, self.key, data.model_dump_json(), data.expire)
        return self

    async def end(self) -> None:
        """Delete the session, end its solo shares and prune it from its group shares."""
        await self.store.delete(self.key)
        logger.info("Session %s ended", self.session_id)
        for share in await self.targets():
            if not share.exists():
                continue
            if share.type == ShareType.SOLO:
                await share.end()
            elif share.type == ShareType.GROUP:
                await share.clean()
