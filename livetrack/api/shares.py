"""Sharing routes: create/join, push location, fetch for viewers, adopt, stop."""
from fastapi import APIRouter, Depends, HTTPException, Query, status

from livetrack.errors import NotFound, RequestRejected, StoreUnavailable
from livetrack.redis_client import get_store
from livetrack.schemas.share import (
    AdoptRequest,
    AdoptResponse,
    CreateRequest,
    CreateResponse,
    PointPush,
    PushResponse,
    ShareView,
    StopRequest,
)
from livetrack.services.kv_store import KeyValueStore
from livetrack.services.sharing import adopt_share, create_share, fetch_share, push_point, stop_session

router = APIRouter(tags=["shares"])


async def _call(coro):
    try:
        return await coro
    except RequestRejected as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StoreUnavailable:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage unavailable")


@router.post("/create", response_model=CreateResponse)
async def create(body: CreateRequest, store: KeyValueStore = Depends(get_store)):
    """Start a session and return its ID plus the public link (and PIN for new groups)."""
    return await _call(create_share(store, body))


@router.post("/post", response_model=PushResponse)
async def post_location(body: PointPush, store: KeyValueStore = Depends(get_store)):
    """Push one location point for a session. 404 once the session has expired."""
    shares = await _call(push_point(store, body.session_id, body.as_point()))
    return PushResponse(shares=shares)


@router.get("/fetch", response_model=ShareView)
async def fetch(id: str = Query(..., min_length=1), store: KeyValueStore = Depends(get_store)):
    return await _call(fetch_share(store, id))


@router.post("/adopt", response_model=AdoptResponse)
async def adopt(body: AdoptRequest, store: KeyValueStore = Depends(get_store)):
    """Adopt a solo share's host into a group share."""
    group = await _call(adopt_share(store, body.pin, body.share_id, body.nickname))
    return AdoptResponse(share_id=group.share_id, hosts=sorted(group.hosts))


@router.post("/stop")
async def stop(body: StopRequest, store: KeyValueStore = Depends(get_store)):
    """End a session: its solo shares end, and it leaves its group shares."""
    await _call(stop_session(store, body.session_id))
    return {"status": "ok"}
