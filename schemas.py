"""
Database Schemas

MongoDB collection schemas as Pydantic models.
Each Pydantic model represents a collection in the database.
Model name is converted to lowercase for the collection name:
- AuthUser -> "authuser" collection
- BlogPost -> "blogpost" collection
- StoredFile -> "storedfile" collection
"""

from pydantic import BaseModel, Field, EmailStr
from typing import Optional


class AuthUser(BaseModel):
    """
    Authentication users collection schema
    Collection name: "authuser" (lowercase of class name)
    """
    name: Optional[str] = Field(None, description="Full name")
    email: EmailStr = Field(..., description="Unique email address, stored lowercased")
    password_hash: str = Field(..., description="BCrypt password hash")
    avatar_url: Optional[str] = Field(None, description="Optional profile avatar URL")
    is_active: bool = Field(True, description="Whether user is active")


class BlogPost(BaseModel):
    """
    Blog post schema
    Collection name: "blogpost"
    """
    title: str
    slug: str = Field(..., description="Unique URL slug")
    excerpt: Optional[str] = None
    content: str
    author_id: str = Field(..., description="Id of the authuser who wrote it")
    cover_image: Optional[str] = None
    tags: list[str] = []
    published: bool = True


class StoredFile(BaseModel):
    """
    Uploaded file metadata; the bytes live in the upload directory
    Collection name: "storedfile"
    """
    filename: str = Field(..., description="Original client filename")
    content_type: str = Field("application/octet-stream", description="MIME type sent by the client")
    size: int = Field(..., ge=0, description="Size in bytes")
    owner_id: str = Field(..., description="Id of the uploading authuser")
    storage_name: str = Field(..., description="Name of the file inside the upload directory")
