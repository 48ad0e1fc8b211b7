from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from ..auth import require_identity, resolve_creator
from ..dependencies import get_store
from ..errors import ValidationFailed
from ..models import Collection
from ..ownership import create_owned, delete_owned, get_document, list_by_creator, update_post
from ..schemas import MessageOut, PostEnvelope, PostOut, PostUpdate, UserPostsEnvelope, public_view
from ..security import Identity
from ..store import DocumentStore
from ..uploads import discard_upload, save_upload

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/posts",
    tags=["posts"],
)


# PUBLIC_INTERFACE
@router.get(
    "/user/{uid}",
    response_model=UserPostsEnvelope,
    summary="List a user's posts",
    responses={
        200: {"description": "Posts found"},
        404: {"description": "User has no posts"},
    },
)
def get_posts_by_user_id(uid: str, store: DocumentStore = Depends(get_store)) -> UserPostsEnvelope:
    posts = list_by_creator(store, Collection.POSTS, uid)
    return UserPostsEnvelope(userPosts=[PostOut(**public_view(p)) for p in posts])


# PUBLIC_INTERFACE
@router.get(
    "/{pid}",
    response_model=PostEnvelope,
    summary="Get post",
    description="Get a single post by ID.",
    responses={
        200: {"description": "Post found"},
        404: {"description": "Post not found"},
    },
)
def get_post_by_id(pid: str, store: DocumentStore = Depends(get_store)) -> PostEnvelope:
    post = get_document(store, Collection.POSTS, pid)
    return PostEnvelope(post=PostOut(**public_view(post)))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=PostEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create post",
    description=(
        "Create a post from a multipart form with an 'image' file (png/jpg/jpeg) "
        "and 'title'/'description' fields. The image is removed again if creation fails."
    ),
    responses={
        201: {"description": "Post created"},
        401: {"description": "Missing/invalid token or creator is another user"},
        404: {"description": "Creator not found"},
        422: {"description": "Missing fields or unsupported image"},
    },
)
def create_post(
    image: UploadFile = File(..., description="Image attached to the post"),
    title: str = Form(""),
    description: str = Form(""),
    creator: Optional[str] = Form(None),
    identity: Identity = Depends(require_identity),
    store: DocumentStore = Depends(get_store),
) -> PostEnvelope:
    """
    Create a post owned by the caller.
    """
    title, description = title.strip(), description.strip()
    if not title or not description:
        raise ValidationFailed("Invalid inputs provided")
    creator_id = resolve_creator(identity, creator or None)

    image_path = save_upload(image.file, image.content_type)
    try:
        created = create_owned(
            store,
            Collection.POSTS,
            {"title": title, "description": description, "image": image_path},
            creator_id,
        )
    except Exception:
        discard_upload(image_path)
        raise
    return PostEnvelope(post=PostOut(**public_view(created)))


# PUBLIC_INTERFACE
@router.patch(
    "/{pid}",
    response_model=PostEnvelope,
    summary="Update post",
    description="Change the title and description of a post. Only its creator may do so.",
    responses={
        200: {"description": "Post updated"},
        401: {"description": "Caller is not the creator"},
        404: {"description": "Post not found"},
    },
)
def patch_post(
    pid: str,
    payload: PostUpdate,
    identity: Identity = Depends(require_identity),
    store: DocumentStore = Depends(get_store),
) -> PostEnvelope:
    caller_id = resolve_creator(identity, None)
    updated = update_post(store, pid, payload.model_dump(), caller_id)
    return PostEnvelope(post=PostOut(**public_view(updated)))


# PUBLIC_INTERFACE
@router.delete(
    "/{pid}",
    response_model=MessageOut,
    summary="Delete post",
    description="Delete a post, unlink it from its creator and remove its image. Only its creator may do so.",
    responses={
        200: {"description": "Post deleted"},
        401: {"description": "Caller is not the creator"},
        404: {"description": "Post not found"},
    },
)
def delete_post(
    pid: str,
    identity: Identity = Depends(require_identity),
    store: DocumentStore = Depends(get_store),
) -> MessageOut:
    caller_id = resolve_creator(identity, None)
    deleted = delete_owned(store, Collection.POSTS, pid, caller_id=caller_id)
    if deleted.get("image"):
        discard_upload(deleted["image"])
    return MessageOut(message="Deleted post")
