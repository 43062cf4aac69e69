"""End-to-end flows: create/join, push, fetch, adopt, stop."""
import pytest

from livetrack.errors import NotFound, RequestRejected, SessionNotFound, ShareNotFound
from livetrack.models.share import ShareType
from livetrack.schemas.share import CreateRequest, ShareMode
from livetrack.services.sessions import SessionRecord
from livetrack.services.shares import GroupShare, load_share, load_share_by_pin
from livetrack.services.sharing import adopt_share, create_share, fetch_share, push_point, stop_session

pytestmark = pytest.mark.asyncio

P1 = (59.91, 10.75, 1000.0, 8.0, None)
P2 = (59.92, 10.76, 1005.0, 6.0, 1.2)


async def test_solo_scenario(store, config, clock):
    t = clock.now()
    created = await create_share(store, CreateRequest(mode=ShareMode.ALONE, duration=60, interval=5), config)
    assert created.group_pin is None
    assert created.view_link.endswith("?" + created.share_id)

    await push_point(store, created.session_id, P1, config)
    shares = await push_point(store, created.session_id, P2, config)
    assert shares == [created.share_id]

    view = await fetch_share(store, created.share_id, config)
    assert view.type == ShareType.SOLO
    assert view.expire == t + 60
    assert view.interval == 5
    assert view.points == [P1, P2]

    await stop_session(store, created.session_id, config)
    assert not (await load_share(store, created.share_id, config)).exists()
    with pytest.raises(ShareNotFound):
        await fetch_share(store, created.share_id, config)


async def test_group_create_and_join(store, config, clock):
    t = clock.now()
    leader = await create_share(
        store, CreateRequest(mode=ShareMode.GROUP, duration=30, interval=10, nickname="leader"), config
    )
    assert leader.group_pin is not None
    joiner = await create_share(
        store,
        CreateRequest(mode=ShareMode.JOIN, duration=90, interval=3, nickname="joiner", pin=leader.group_pin),
        config,
    )
    assert joiner.share_id == leader.share_id

    await push_point(store, leader.session_id, P1, config)
    await push_point(store, joiner.session_id, P2, config)
    view = await fetch_share(store, leader.share_id, config)
    assert view.type == ShareType.GROUP
    assert view.expire == t + 90
    assert view.interval == 3
    assert view.points == {"leader": [P1], "joiner": [P2]}

    joined = await SessionRecord.load(store, joiner.session_id, config)
    assert joined.target_ids == [leader.share_id]


async def test_join_unknown_pin_creates_nothing(store, config):
    with pytest.raises(ShareNotFound):
        await create_share(
            store, CreateRequest(mode=ShareMode.JOIN, duration=60, interval=5, nickname="x", pin=999999), config
        )
    assert store.data == {}


async def test_fetch_stale_group_is_not_found(store, config, clock):
    leader = await create_share(
        store, CreateRequest(mode=ShareMode.GROUP, duration=30, interval=5, nickname="leader"), config
    )
    share = await load_share(store, leader.share_id, config)
    # Outlive the host without letting the group record expire.
    store.data[share.key] = (store.data[share.key][0], clock.now() + 3600)
    clock.advance(31)
    with pytest.raises(ShareNotFound):
        await fetch_share(store, leader.share_id, config)


@pytest.mark.parametrize(
    "body",
    [
        CreateRequest(duration=0, interval=5),
        CreateRequest(duration=86401, interval=5),
        CreateRequest(duration=60, interval=0.5),
        CreateRequest(mode=ShareMode.GROUP, duration=60, interval=5),
        CreateRequest(mode=ShareMode.JOIN, duration=60, interval=5, nickname="x"),
    ],
)
async def test_create_rejects_bad_parameters(store, config, body):
    with pytest.raises(RequestRejected):
        await create_share(store, body, config)


async def test_push_to_expired_session(store, config, clock):
    created = await create_share(store, CreateRequest(duration=10, interval=5), config)
    clock.advance(10)
    with pytest.raises(SessionNotFound):
        await push_point(store, created.session_id, P1, config)


async def test_adopt_solo_into_group(store, config):
    group = await create_share(
        store, CreateRequest(mode=ShareMode.GROUP, duration=60, interval=5, nickname="leader"), config
    )
    solo = await create_share(store, CreateRequest(duration=120, interval=5, adoptable=True), config)

    adopted = await adopt_share(store, group.group_pin, solo.share_id, "guest", config)

    assert isinstance(adopted, GroupShare)
    assert set(adopted.hosts) == {"leader", "guest"}
    assert adopted.hosts["guest"] == solo.session_id
    host = await SessionRecord.load(store, solo.session_id, config)
    assert set(host.target_ids) == {solo.share_id, group.share_id}
    by_pin = await load_share_by_pin(store, group.group_pin, config)
    assert by_pin.expire == adopted.expire


async def test_adopt_requires_adoptable(store, config):
    group = await create_share(
        store, CreateRequest(mode=ShareMode.GROUP, duration=60, interval=5, nickname="leader"), config
    )
    solo = await create_share(store, CreateRequest(duration=60, interval=5), config)
    with pytest.raises(RequestRejected):
        await adopt_share(store, group.group_pin, solo.share_id, "guest", config)
    with pytest.raises(ShareNotFound):
        await adopt_share(store, 111111, solo.share_id, "guest", config)


async def test_stop_unknown_session(store, config):
    with pytest.raises(SessionNotFound):
        await stop_session(store, "f" * 64, config)


async def test_session_and_share_misses_share_a_base(store, config):
    with pytest.raises(NotFound):
        await stop_session(store, "f" * 64, config)
    with pytest.raises(NotFound):
        await fetch_share(store, "NONE-NONE", config)
    assert not issubclass(SessionNotFound, ShareNotFound)


async def test_adopt_into_stale_group_is_not_found(store, config, clock):
    group = await create_share(
        store, CreateRequest(mode=ShareMode.GROUP, duration=30, interval=5, nickname="leader"), config
    )
    solo = await create_share(store, CreateRequest(duration=600, interval=5, adoptable=True), config)
    share = await load_share(store, group.share_id, config)
    # Keep the group record and its PIN past the leader's expiry.
    for key in (share.key, share.pin_key):
        store.data[key] = (store.data[key][0], clock.now() + 3600)
    clock.advance(31)

    with pytest.raises(ShareNotFound):
        await adopt_share(store, group.group_pin, solo.share_id, "guest", config)

    unchanged = await load_share(store, group.share_id, config)
    assert set(unchanged.hosts) == {"leader"}
    host = await SessionRecord.load(store, solo.session_id, config)
    assert host.target_ids == [solo.share_id]


async def test_group_fetch_reads_hosts_once(store, config, clock, monkeypatch):
    leader = await create_share(
        store, CreateRequest(mode=ShareMode.GROUP, duration=30, interval=5, nickname="leader"), config
    )
    clock.advance(29)
    calls = []
    original = GroupShare.get_hosts

    async def get_hosts_lapsing_on_reread(self):
        # Any second read happens after the leader has lapsed.
        if calls:
            clock.advance(1)
        calls.append(1)
        return await original(self)

    monkeypatch.setattr(GroupShare, "get_hosts", get_hosts_lapsing_on_reread)
    view = await fetch_share(store, leader.share_id, config)

    assert len(calls) == 1
    assert view.interval == 5
    assert view.points == {"leader": []}
