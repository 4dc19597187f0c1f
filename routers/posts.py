"""Blog post routes.

Anyone can read published posts; writing requires a bearer token and only
the author may change or delete a post.
"""

import logging
import re
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field, field_validator
from pymongo.errors import DuplicateKeyError

from database import create_document, delete_document, find_document, get_document, get_documents, to_public, update_document
from schemas import BlogPost
from search import SearchQuery, search_params
from security import get_current_user, get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])

SEARCH_FIELDS = ("title", "content", "tags")


class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    slug: Optional[str] = Field(None, max_length=200)
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    tags: List[str] = []
    published: bool = True


class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, max_length=200)
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    tags: Optional[List[str]] = None
    published: Optional[bool] = None

    @field_validator("title", "content", "tags", "published")
    @classmethod
    def not_null(cls, value):
        # omit a field to leave it unchanged; null is not a valid value
        if value is None:
            raise ValueError("may not be null")
        return value


class PostOut(BaseModel):
    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    author_id: str
    cover_image: Optional[str] = None
    tags: List[str] = []
    published: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "post"


def unique_slug(base: str) -> str:
    """Return `base`, or `base-2`, `base-3`, ... whichever is still free."""
    slug = base
    n = 2
    while find_document("blogpost", {"slug": slug}):
        slug = f"{base}-{n}"
        n += 1
    return slug


def _load_post(post_id: str) -> dict:
    doc = get_document("blogpost", post_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Post not found")
    return doc


def _load_own_post(post_id: str, current_user: dict) -> dict:
    doc = _load_post(post_id)
    if doc.get("author_id") != str(current_user["_id"]):
        raise HTTPException(status_code=403, detail="Only the author can modify this post")
    return doc


@router.post("", response_model=PostOut, status_code=status.HTTP_201_CREATED)
def create_post(payload: PostCreate, current_user: dict = Depends(get_current_user)):
    if payload.slug:
        slug = slugify(payload.slug)
        if find_document("blogpost", {"slug": slug}):
            raise HTTPException(status_code=400, detail="Slug is already taken")
    else:
        slug = unique_slug(slugify(payload.title))

    post = BlogPost(
        **payload.model_dump(exclude={"slug"}),
        slug=slug,
        author_id=str(current_user["_id"]),
    )
    try:
        post_id = create_document("blogpost", post)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Slug is already taken")

    logger.info("Post %s created by %s", post_id, post.author_id)
    return to_public(get_document("blogpost", post_id))


@router.get("", response_model=List[PostOut])
def list_posts(
    search: SearchQuery = Depends(search_params),
    author_id: Optional[str] = None,
    tag: Optional[str] = None,
    limit: int = Query(50, ge=1, le=100),
    skip: int = Query(0, ge=0),
):
    # each condition is its own clause so a tag filter never replaces a tags search
    conditions = [{"published": True}]
    search_filter = search.to_filter(SEARCH_FIELDS)
    if search_filter:
        conditions.append(search_filter)
    if author_id:
        conditions.append({"author_id": author_id})
    if tag:
        conditions.append({"tags": tag})

    posts = get_documents(
        "blogpost",
        {"$and": conditions},
        limit=limit,
        skip=skip,
        sort=[("created_at", -1), ("_id", -1)],
    )
    return [to_public(p) for p in posts]


@router.get("/{post_id}", response_model=PostOut)
def get_post(post_id: str, current_user: Optional[dict] = Depends(get_optional_user)):
    doc = _load_post(post_id)
    if not doc.get("published", True):
        # drafts are only visible to their author
        if current_user is None or doc.get("author_id") != str(current_user["_id"]):
            raise HTTPException(status_code=404, detail="Post not found")
    return to_public(doc)


@router.patch("/{post_id}", response_model=PostOut)
def update_post(post_id: str, patch: PostUpdate, current_user: dict = Depends(get_current_user)):
    doc = _load_own_post(post_id, current_user)
    changes = patch.model_dump(exclude_unset=True)

    if "slug" in changes:
        if changes["slug"] is None:
            changes.pop("slug")
        else:
            slug = slugify(changes["slug"])
            taken = find_document("blogpost", {"slug": slug})
            if taken and taken["_id"] != doc["_id"]:
                raise HTTPException(status_code=400, detail="Slug is already taken")
            changes["slug"] = slug

    if not changes:
        return to_public(doc)

    updated = update_document("blogpost", post_id, changes)
    if updated is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return to_public(updated)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(post_id: str, current_user: dict = Depends(get_current_user)):
    _load_own_post(post_id, current_user)
    delete_document("blogpost", post_id)
    logger.info("Post %s deleted", post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
