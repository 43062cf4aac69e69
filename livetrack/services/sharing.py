"""Per-endpoint flows composed from sessions and shares. Raise RequestRejected/NotFound subclasses for the API to map."""
import logging

from livetrack import clock
from livetrack.config import Settings, settings
from livetrack.errors import RequestRejected, SessionNotFound, ShareNotFound
from livetrack.models.session import Point
from livetrack.models.share import ShareType
from livetrack.schemas.share import CreateRequest, CreateResponse, ShareMode, ShareView
from livetrack.services.kv_store import KeyValueStore
from livetrack.services.sessions import SessionRecord
from livetrack.services.shares import GroupShare, SoloShare, load_share, load_share_by_pin

logger = logging.getLogger(__name__)


def _check_limits(body: CreateRequest, config: Settings) -> None:
    if body.duration <= 0 or body.duration > config.MAX_DURATION:
        raise RequestRejected(f"Share duration must be between 1 and {config.MAX_DURATION} seconds")
    if body.interval < config.MIN_INTERVAL:
        raise RequestRejected(f"Interval must be at least {config.MIN_INTERVAL} seconds")
    if body.mode in (ShareMode.GROUP, ShareMode.JOIN) and not body.nickname:
        raise RequestRejected("A nickname is required for group shares")
    if body.mode == ShareMode.JOIN and body.pin is None:
        raise RequestRejected("A group PIN is required to join a group share")


async def create_share(store: KeyValueStore, body: CreateRequest, config: Settings | None = None) -> CreateResponse:
    """Start a session and attach it to a new solo share, a new group share, or an existing group."""
    config = config or settings
    _check_limits(body, config)

    if body.mode == ShareMode.JOIN:
        # Resolve the group before creating anything so a bad PIN leaves no session behind.
        share = await load_share_by_pin(store, body.pin, config)
        if not share.exists() or not await share.has_live_hosts():
            raise ShareNotFound("Group share not found")

    session = await SessionRecord.create(store, config)
    session.expire = clock.now() + body.duration
    session.interval = body.interval

    if body.mode == ShareMode.ALONE:
        share = await SoloShare.create(store, config)
        share.set_host(session).set_adoptable(body.adoptable).set_expiration_time(session.expire)
        await share.save()
    else:
        if body.mode == ShareMode.GROUP:
            share = await GroupShare.create(store, config)
        # The host must be in the store for the group's expiry to count it.
        await session.save()
        await share.add_host(body.nickname, session)
        await share.save()

    session.add_target(share.share_id)
    await session.save()
    logger.info("Session %s %s share %s", session.session_id, "joined" if body.mode == ShareMode.JOIN else "created", share.share_id)
    return CreateResponse(
        session_id=session.session_id,
        share_id=share.share_id,
        view_link=share.view_link,
        group_pin=share.group_pin if isinstance(share, GroupShare) else None,
    )


async def push_point(store: KeyValueStore, session_id: str, point: Point, config: Settings | None = None) -> list[str]:
    """Append point to the session and return the IDs of the shares it feeds."""
    session = await SessionRecord.load(store, session_id, config)
    if not session.is_live():
        raise SessionNotFound("Session expired")
    await session.add_point(point).save()
    return session.target_ids


async def fetch_share(store: KeyValueStore, share_id: str, config: Settings | None = None) -> ShareView:
    """What a viewer polls: the share's type, expiry, interval and current points."""
    share = await load_share(store, share_id, config)
    if not share.exists():
        raise ShareNotFound("Share not found")
    if share.type == ShareType.SOLO:
        host = await share.get_host()
        if not host.is_live():
            raise ShareNotFound("Share not found")
        return ShareView(
            type=ShareType.SOLO,
            expire=share.expire,
            server_time=clock.now(),
            interval=host.interval,
            points=host.points,
        )
    # One read of the hosts so points and interval describe the same set.
    live = await share.live_hosts()
    if not live:
        # No live hosts left; the record just has not been cleaned up yet.
        raise ShareNotFound("Share not found")
    return ShareView(
        type=ShareType.GROUP,
        expire=share.expire,
        server_time=clock.now(),
        interval=min(host.interval for host in live.values()),
        points={nick: host.points for nick, host in live.items()},
    )


async def adopt_share(
    store: KeyValueStore, pin: int, share_id: str, nickname: str, config: Settings | None = None
) -> GroupShare:
    """Pull the host of an adoptable solo share into the group share with the given PIN."""
    group = await load_share_by_pin(store, pin, config)
    if not group.exists() or not await group.has_live_hosts():
        raise ShareNotFound("Group share not found")
    solo = await load_share(store, share_id, config)
    if not solo.exists():
        raise ShareNotFound("Share not found")
    if not solo.is_adoptable():
        raise RequestRejected("Share cannot be adopted")
    host = await solo.get_host()
    if not host.is_live():
        raise ShareNotFound("Share host has expired")
    await group.add_host(nickname, host)
    await group.save()
    await host.add_target(group.share_id).save()
    logger.info("Group share %s adopted %s as %r", group.share_id, share_id, nickname)
    return group


async def stop_session(store: KeyValueStore, session_id: str, config: Settings | None = None) -> None:
    session = await SessionRecord.load(store, session_id, config)
    if not session.exists():
        raise SessionNotFound("Session not found")
    await session.end()
