"""User listing and self-service profile routes.

Every route requires authentication. Listing accepts the shared
`scope`/`query` search pair over the `name` and `email` fields.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from database import delete_document, delete_documents, get_document, get_documents, update_document
from routers.auth import PublicUser, public_user
from routers.files import remove_files_owned_by
from search import SearchQuery, search_params
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(get_current_user)])

SEARCH_FIELDS = ("name", "email")


class UserUpdate(BaseModel):
    name: Optional[str] = None
    avatar_url: Optional[str] = None


@router.get("", response_model=List[PublicUser])
def list_users(
    search: SearchQuery = Depends(search_params),
    limit: int = Query(50, ge=1, le=100),
    skip: int = Query(0, ge=0),
):
    users = get_documents(
        "authuser",
        search.to_filter(SEARCH_FIELDS),
        limit=limit,
        skip=skip,
        sort=[("created_at", 1), ("_id", 1)],
    )
    return [public_user(u) for u in users]


# /users/me routes are declared before /users/{user_id} so "me" is not read as an id


@router.get("/me", response_model=PublicUser)
def read_current_user(current_user: dict = Depends(get_current_user)):
    return public_user(current_user)


@router.patch("/me", response_model=PublicUser)
def update_current_user(patch: UserUpdate, current_user: dict = Depends(get_current_user)):
    """Patch the authenticated user's profile (name, avatar)."""
    changes = patch.model_dump(exclude_unset=True)
    if not changes:
        return public_user(current_user)

    updated = update_document("authuser", str(current_user["_id"]), changes)
    if updated is None:
        raise HTTPException(status_code=404, detail="User not found")
    return public_user(updated)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def delete_current_user(current_user: dict = Depends(get_current_user)):
    """Delete the account together with its posts and files."""
    user_id = str(current_user["_id"])
    posts = delete_documents("blogpost", {"author_id": user_id})
    files = remove_files_owned_by(user_id)
    delete_document("authuser", user_id)
    logger.info("Deleted user %s (%d posts, %d files)", user_id, posts, files)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}", response_model=PublicUser)
def get_user(user_id: str):
    doc = get_document("authuser", user_id)
    if not doc:
        raise HTTPException(status_code=404, detail="User not found")
    return public_user(doc)
