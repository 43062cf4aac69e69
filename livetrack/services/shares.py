"""Shares: public viewing links fed by one session (solo) or several (group).

Both variants keep a list of session IDs, not location data; points are read
from the sessions on demand. Group shares also publish a PIN -> share ID entry
so new devices can join with a short code.
"""
import asyncio
import logging
import math

from livetrack import clock
from livetrack.config import Settings, settings
from livetrack.errors import InvariantViolation
from livetrack.models.session import Point
from livetrack.models.share import GroupShareData, ShareType, SoloShareData, share_data_adapter
from livetrack.services.identifiers import IdentifierGenerator
from livetrack.services.kv_store import KeyValueStore, group_pin_key, share_key, store_until
from livetrack.services.sessions import SessionRecord

logger = logging.getLogger(__name__)


def _view_link(config: Settings, share_id: str) -> str:
    return f"{config.PUBLIC_URL}?{share_id}"


class SoloShare:
    """A share with a single host session. May be adopted into a group share."""

    type = ShareType.SOLO

    def __init__(self, store: KeyValueStore, share_id: str, data: SoloShareData, config: Settings | None = None) -> None:
        self.store = store
        self.share_id = share_id
        self.data = data
        self.config = config or settings

    @classmethod
    async def create(cls, store: KeyValueStore, config: Settings | None = None) -> "SoloShare":
        config = config or settings
        share_id = await IdentifierGenerator(store, config).new_share_id()
        return cls(store, share_id, SoloShareData(), config)

    def exists(self) -> bool:
        return True

    @property
    def key(self) -> str:
        return share_key(self.config.KEY_PREFIX, self.share_id)

    @property
    def view_link(self) -> str:
        return _view_link(self.config, self.share_id)

    @property
    def expire(self) -> int:
        return self.data.expire

    def set_expiration_time(self, expire: int) -> "SoloShare":
        self.data.expire = expire
        return self

    def has_expired(self) -> bool:
        return self.expire <= clock.now()

    def is_adoptable(self) -> bool:
        return self.data.adoptable

    def set_adoptable(self, adoptable: bool) -> "SoloShare":
        self.data.adoptable = adoptable
        return self

    @property
    def host_id(self) -> str | None:
        return self.data.host

    def set_host(self, session: SessionRecord) -> "SoloShare":
        self.data.host = session.session_id
        return self

    async def get_host(self) -> SessionRecord:
        """The host session; callers check exists() before using it."""
        if self.data.host is None:
            return SessionRecord(self.store, "", None, self.config)
        return await SessionRecord.load(self.store, self.data.host, self.config)

    async def get_interval(self) -> float:
        host = await self.get_host()
        return host.interval if host.is_live() else math.inf

    async def save(self) -> "SoloShare":
        if self.data.expire == 0:
            raise InvariantViolation("Share cannot be indefinite")
        await store_until(self.store, self.key, self.data.model_dump_json(), self.data.expire)
        return self

    async def end(self) -> None:
        await self.store.delete(self.key)
        logger.info("Solo share %s ended", self.share_id)


class GroupShare:
    """A share with several nicknamed host sessions and a join PIN.

    expire is derived: the latest expiry among live hosts. It is recomputed when
    hosts are added and on every save.
    """

    type = ShareType.GROUP

    def __init__(self, store: KeyValueStore, share_id: str, data: GroupShareData, config: Settings | None = None) -> None:
        self.store = store
        self.share_id = share_id
        self.data = data
        self.config = config or settings

    @classmethod
    async def create(cls, store: KeyValueStore, config: Settings | None = None) -> "GroupShare":
        config = config or settings
        ids = IdentifierGenerator(store, config)
        share_id = await ids.new_share_id()
        pin = await ids.new_group_pin()
        return cls(store, share_id, GroupShareData(group_pin=pin), config)

    def exists(self) -> bool:
        return True

    @property
    def key(self) -> str:
        return share_key(self.config.KEY_PREFIX, self.share_id)

    @property
    def pin_key(self) -> str:
        return group_pin_key(self.config.KEY_PREFIX, self.group_pin)

    @property
    def view_link(self) -> str:
        return _view_link(self.config, self.share_id)

    @property
    def group_pin(self) -> int:
        return self.data.group_pin

    @property
    def expire(self) -> int:
        return self.data.expire

    def has_expired(self) -> bool:
        return self.expire <= clock.now()

    def is_adoptable(self) -> bool:
        return False

    @property
    def hosts(self) -> dict[str, str]:
        return dict(self.data.hosts)

    async def get_hosts(self) -> dict[str, SessionRecord]:
        """Nickname -> loaded session, for every registered host."""
        nicks = list(self.data.hosts)
        sessions = await asyncio.gather(
            *[SessionRecord.load(self.store, self.data.hosts[nick], self.config) for nick in nicks]
        )
        return dict(zip(nicks, sessions))

    async def add_host(self, nickname: str, session: SessionRecord) -> "GroupShare":
        """Register session under nickname (replacing any previous holder). Does not save."""
        self.data.hosts[nickname] = session.session_id
        await self.set_auto_expiration_time()
        return self

    def remove_host(self, session: SessionRecord) -> "GroupShare":
        """Drop every nickname pointing at session. Call clean() afterwards."""
        self.data.hosts = {nick: sid for nick, sid in self.data.hosts.items() if sid != session.session_id}
        return self

    async def live_hosts(self) -> dict[str, SessionRecord]:
        """Nickname -> session, for hosts whose sessions exist and have not expired."""
        return {nick: host for nick, host in (await self.get_hosts()).items() if host.is_live()}

    async def get_auto_expiration_time(self) -> int:
        return max((host.expire for host in (await self.live_hosts()).values()), default=0)

    async def get_auto_interval(self) -> float:
        return min((host.interval for host in (await self.live_hosts()).values()), default=math.inf)

    async def set_auto_expiration_time(self) -> "GroupShare":
        self.data.expire = await self.get_auto_expiration_time()
        return self

    async def has_live_hosts(self) -> bool:
        return bool(await self.live_hosts())

    async def get_all_points(self) -> dict[str, list[Point]]:
        return {nick: host.points for nick, host in (await self.live_hosts()).items()}

    async def save(self) -> "GroupShare":
        """Recompute expire, then write the share record followed by its PIN entry.

        If the share has already expired, the PIN entry is deleted before the record.
        """
        await self.set_auto_expiration_time()
        await self._publish()
        return self

    async def _publish(self) -> None:
        if self.data.expire == 0:
            raise InvariantViolation("Share cannot be indefinite")
        if self.has_expired():
            await self._delete()
            return
        await store_until(self.store, self.key, self.data.model_dump_json(), self.data.expire)
        await store_until(self.store, self.pin_key, self.share_id, self.data.expire)

    async def clean(self) -> None:
        """Drop hosts whose sessions are gone or expired; delete the share if none remain."""
        hosts = await self.get_hosts()
        live = {nick: host for nick, host in hosts.items() if host.is_live()}
        dead = [nick for nick in hosts if nick not in live]
        for nick in dead:
            del self.data.hosts[nick]
        if not self.data.hosts:
            await self._delete()
            logger.info("Group share %s has no hosts left; deleted", self.share_id)
            return
        if dead:
            logger.info("Pruned %d host(s) from group share %s", len(dead), self.share_id)
        # Expiry from the same snapshot; if those hosts lapse meanwhile, _publish deletes.
        self.data.expire = max(host.expire for host in live.values())
        await self._publish()

    async def end(self) -> None:
        await self._delete()
        logger.info("Group share %s ended", self.share_id)

    async def _delete(self) -> None:
        await self.store.delete(self.pin_key)
        await self.store.delete(self.key)


class MissingShare:
    """Stand-in returned when a share ID or PIN does not resolve."""

    type = None

    def __init__(self, share_id: str | None = None) -> None:
        self.share_id = share_id

    def exists(self) -> bool:
        return False


Share = SoloShare | GroupShare | MissingShare


async def load_share(store: KeyValueStore, share_id: str, config: Settings | None = None) -> Share:
    """Load a share by its public ID, as the variant recorded in its `type` field."""
    config = config or settings
    raw = await store.get(share_key(config.KEY_PREFIX, share_id))
    if raw is None:
        return MissingShare(share_id)
    data = share_data_adapter.validate_json(raw)
    if isinstance(data, GroupShareData):
        return GroupShare(store, share_id, data, config)
    return SoloShare(store, share_id, data, config)


async def load_share_by_pin(store: KeyValueStore, pin: int, config: Settings | None = None) -> Share:
    """Resolve a group PIN to its share. A stale or dangling PIN entry resolves to MissingShare."""
    config = config or settings
    raw = await store.get(group_pin_key(config.KEY_PREFIX, pin))
    if raw is None:
        return MissingShare()
    share_id = raw.decode() if isinstance(raw, bytes) else raw
    share = await load_share(store, share_id, config)
    if not isinstance(share, GroupShare):
        return MissingShare(share_id)
    return share
