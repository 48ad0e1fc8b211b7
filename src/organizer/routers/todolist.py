from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..auth import require_identity, resolve_creator
from ..dependencies import get_store
from ..models import Collection
from ..ownership import create_owned, delete_owned, list_by_creator
from ..schemas import (
    MessageOut,
    TodoItemCreate,
    TodoItemEnvelope,
    TodoItemOut,
    UserTodoItemsEnvelope,
    public_view,
)
from ..security import Identity
from ..store import DocumentStore

router = APIRouter(
    prefix="/api/todolist",
    tags=["todolist"],
)


# PUBLIC_INTERFACE
@router.get(
    "/user/{uid}",
    response_model=UserTodoItemsEnvelope,
    summary="List a user's to-do items",
    responses={
        200: {"description": "To-do items found"},
        404: {"description": "User has no to-do items"},
    },
)
def get_todo_items_by_user_id(uid: str, store: DocumentStore = Depends(get_store)) -> UserTodoItemsEnvelope:
    items = list_by_creator(store, Collection.TODOLIST, uid)
    return UserTodoItemsEnvelope(usertdItems=[TodoItemOut(**public_view(i)) for i in items])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoItemEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create to-do item",
    responses={
        201: {"description": "To-do item created"},
        401: {"description": "Missing/invalid token or creator is another user"},
        404: {"description": "Creator not found"},
        422: {"description": "Missing description"},
    },
)
def create_todo_item(
    payload: TodoItemCreate,
    identity: Identity = Depends(require_identity),
    store: DocumentStore = Depends(get_store),
) -> TodoItemEnvelope:
    creator_id = resolve_creator(identity, payload.creator)
    created = create_owned(store, Collection.TODOLIST, {"description": payload.description}, creator_id)
    return TodoItemEnvelope(TDItem=TodoItemOut(**public_view(created)))


# PUBLIC_INTERFACE
@router.delete(
    "/{lid}",
    response_model=MessageOut,
    summary="Delete to-do item",
    responses={
        200: {"description": "To-do item deleted"},
        401: {"description": "Caller is not the creator"},
        404: {"description": "To-do item not found"},
    },
)
def delete_todo_item(
    lid: str,
    identity: Identity = Depends(require_identity),
    store: DocumentStore = Depends(get_store),
) -> MessageOut:
    delete_owned(store, Collection.TODOLIST, lid, caller_id=resolve_creator(identity, None))
    return MessageOut(message="Deleted item")
