"""
Ownership-consistent writes for documents owned by a user.

Every post, calendar item and to-do item is referenced from its creator's
matching list (User.posts / User.calendar / User.todolist). Creating or
deleting one always touches both documents inside a single store
transaction, so a child never exists without its owner reference and a
reference never outlives its child.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from .errors import ApiError, AuthorizationFailed, NotFound, StoreError
from .models import Collection
from .store import DocumentStore, new_id

logger = logging.getLogger(__name__)


def _child(collection: Collection | str) -> Collection:
    coll = Collection(collection)
    if not coll.is_child:
        raise ValueError(f"{coll.value} is not an owned collection")
    return coll


# PUBLIC_INTERFACE
def create_owned(
    store: DocumentStore,
    collection: Collection | str,
    fields: Mapping[str, Any],
    creator_id: str,
) -> dict:
    """
    Create a child document and append its id to the creator's reference list.

    Steps:
    1. Resolve the creator (StoreError if the lookup fails, NotFound if absent).
    2. Build the child document in memory.
    3. In one transaction: re-read the user, save the child, append its id to
       the user's list, save the user, commit.

    Any failure in step 3 aborts the transaction and raises StoreError
    ("Could not create <kind>"); nothing from the attempt is visible afterwards.

    Returns:
        The persisted child document.
    """
    coll = _child(collection)
    try:
        user = store.find_by_id(Collection.USERS, creator_id)
    except StoreError as exc:
        logger.error("Creator lookup failed for %s: %s", coll.value, exc)
        raise StoreError(f"Creating {coll.label} failed, please try again") from exc
    if user is None:
        raise NotFound("Could not find user for the provided id")

    document: Dict[str, Any] = {**fields, "id": new_id(), "creator": user["id"], "version": 0}

    try:
        with store.start_session() as session:
            session.start_transaction()
            # Append to the user as of this transaction, not the earlier lookup
            owner = store.find_by_id(Collection.USERS, user["id"], session=session)
            if owner is None:
                raise NotFound("Could not find user for the provided id")
            created = store.save(coll, document, session=session)
            owner[coll.owner_field] = [*owner.get(coll.owner_field, []), created["id"]]
            store.save(Collection.USERS, owner, session=session)
            session.commit_transaction()
    except NotFound:
        raise
    except ApiError as exc:
        logger.warning("Aborted creation of %s for user %s: %r", coll.label, creator_id, exc)
        raise StoreError(f"Could not create {coll.label}, please try again") from exc

    logger.info("Created %s %s for user %s", coll.label, created["id"], user["id"])
    return created


# PUBLIC_INTERFACE
def delete_owned(
    store: DocumentStore,
    collection: Collection | str,
    doc_id: str,
    caller_id: Optional[str] = None,
) -> dict:
    """
    Delete a child document and remove its id from the owner's reference list.
    Returns the deleted document.

    When caller_id is given, the document's creator must be the caller,
    otherwise AuthorizationFailed is raised and nothing changes.

    Raises:
        StoreError if a lookup fails or the transaction cannot commit.
        NotFound if the document does not exist.
        AuthorizationFailed on an ownership mismatch.
    """
    coll = _child(collection)
    try:
        item = store.find_by_id(coll, doc_id)
    except StoreError as exc:
        logger.error("Lookup of %s %s failed: %s", coll.label, doc_id, exc)
        raise StoreError(f"Could not delete {coll.label}, please try again") from exc

    if item is None:
        raise NotFound(f"Could not find {coll.label} for the provided id")

    if caller_id is not None and item["creator"] != caller_id:
        raise AuthorizationFailed("You're unable to delete this item")

    try:
        with store.start_session() as session:
            session.start_transaction()
            store.delete(coll, item["id"], session=session)
            owner = store.find_by_id(Collection.USERS, item["creator"], session=session)
            if owner is not None:
                owner[coll.owner_field] = [
                    ref for ref in owner.get(coll.owner_field, []) if ref != item["id"]
                ]
                store.save(Collection.USERS, owner, session=session)
            else:
                logger.warning("Owner %s of %s %s is missing", item["creator"], coll.label, item["id"])
            session.commit_transaction()
    except ApiError as exc:
        logger.warning("Aborted deletion of %s %s: %r", coll.label, doc_id, exc)
        raise StoreError(f"Could not delete {coll.label}, please try again") from exc

    logger.info("Deleted %s %s", coll.label, item["id"])
    return item


# PUBLIC_INTERFACE
def update_post(
    store: DocumentStore,
    post_id: str,
    changes: Mapping[str, Any],
    caller_id: str,
) -> dict:
    """
    Apply title/description changes to a post owned by the caller.

    A single document changes, so no transaction is opened.
    """
    try:
        post = store.find_by_id(Collection.POSTS, post_id)
    except StoreError as exc:
        raise StoreError("Could not find post with that id") from exc
    if post is None:
        raise NotFound("Could not find post for the provided id")

    if post["creator"] != caller_id:
        raise AuthorizationFailed("You're unable to edit this item")

    for field in ("title", "description"):
        if field in changes:
            post[field] = changes[field]

    try:
        return store.save(Collection.POSTS, post)
    except StoreError as exc:
        logger.warning("Update of post %s failed: %r", post_id, exc)
        raise StoreError("Could not update post, please try again") from exc


# PUBLIC_INTERFACE
def get_document(store: DocumentStore, collection: Collection | str, doc_id: str) -> dict:
    """Return a document or raise NotFound."""
    coll = Collection(collection)
    try:
        doc = store.find_by_id(coll, doc_id)
    except StoreError as exc:
        raise StoreError(f"Could not find {coll.label} with that id") from exc
    if doc is None:
        raise NotFound(f"Could not find {coll.label} for the provided id")
    return doc


# PUBLIC_INTERFACE
def list_by_creator(store: DocumentStore, collection: Collection | str, user_id: str) -> List[dict]:
    """
    Return every document of collection created by user_id.

    An empty result is reported as NotFound.
    """
    coll = _child(collection)
    try:
        docs = store.find_by_filter(coll, {"creator": user_id})
    except StoreError as exc:
        raise StoreError(f"Could not find {coll.label}s for the provided user id") from exc
    if not docs:
        raise NotFound(f"Could not find {coll.label}s for the provided user id")
    return docs
