from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..auth import require_identity, resolve_creator
from ..dependencies import get_store
from ..models import Collection
from ..ownership import create_owned, delete_owned, list_by_creator
from ..schemas import (
    CalendarItemCreate,
    CalendarItemEnvelope,
    CalendarItemOut,
    MessageOut,
    UserCalendarItemsEnvelope,
    public_view,
)
from ..security import Identity
from ..store import DocumentStore

router = APIRouter(
    prefix="/api/calendar",
    tags=["calendar"],
)


# PUBLIC_INTERFACE
@router.get(
    "/user/{uid}",
    response_model=UserCalendarItemsEnvelope,
    summary="List a user's calendar items",
    responses={
        200: {"description": "Calendar items found"},
        404: {"description": "User has no calendar items"},
    },
)
def get_calendar_items_by_user_id(
    uid: str, store: DocumentStore = Depends(get_store)
) -> UserCalendarItemsEnvelope:
    items = list_by_creator(store, Collection.CALENDAR, uid)
    return UserCalendarItemsEnvelope(
        userCalendarItems=[CalendarItemOut(**public_view(i)) for i in items]
    )


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=CalendarItemEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create calendar item",
    responses={
        201: {"description": "Calendar item created"},
        401: {"description": "Missing/invalid token or creator is another user"},
        404: {"description": "Creator not found"},
        422: {"description": "Missing fields"},
    },
)
def create_calendar_item(
    payload: CalendarItemCreate,
    identity: Identity = Depends(require_identity),
    store: DocumentStore = Depends(get_store),
) -> CalendarItemEnvelope:
    creator_id = resolve_creator(identity, payload.creator)
    created = create_owned(
        store,
        Collection.CALENDAR,
        payload.model_dump(include={"title", "description", "date", "time"}),
        creator_id,
    )
    return CalendarItemEnvelope(CalendarItem=CalendarItemOut(**public_view(created)))


# PUBLIC_INTERFACE
@router.delete(
    "/{cid}",
    response_model=MessageOut,
    summary="Delete calendar item",
    responses={
        200: {"description": "Calendar item deleted"},
        401: {"description": "Caller is not the creator"},
        404: {"description": "Calendar item not found"},
    },
)
def delete_calendar_item(
    cid: str,
    identity: Identity = Depends(require_identity),
    store: DocumentStore = Depends(get_store),
) -> MessageOut:
    delete_owned(store, Collection.CALENDAR, cid, caller_id=resolve_creator(identity, None))
    return MessageOut(message="Deleted calendar item")
