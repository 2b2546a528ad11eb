from __future__ import annotations
from datetime import datetime
from enum import StrEnum
from pydantic import BaseModel, Field
from .base import BaseSchema

# --- Input Schemas ---


class FolderCreate(BaseModel):
    """Schema for creating a folder under an existing parent."""

    title: str
    parent_id: str


class FolderRename(BaseModel):
    """Schema for changing a folder's title."""

    title: str


class FolderMove(BaseModel):
    """Schema for re-parenting a folder."""

    new_parent_id: str


# --- Output Schemas ---


class FolderDetails(BaseSchema):
    """A folder record with its child folder ids and placed item ids."""

    id: str
    owner_id: str
    title: str
    created_at: datetime | None = None
    children: list[str] = Field(default_factory=list)
    items: list[str] = Field(default_factory=list)


class FolderTreeOut(BaseSchema):
    """
    Schema for returning a folder, including its children.
    This is a recursive schema.
    """

    id: str
    title: str
    items: list[str] = Field(default_factory=list)
    children: list["FolderTreeOut"] = Field(default_factory=list)


class FolderRootOut(BaseModel):
    root_folder_id: str


class FolderIdOut(BaseModel):
    folder_id: str


class FolderDeletion(BaseModel):
    """
    Outcome of a cascade delete.

    `folders` is the deleted subtree, the requested folder included.
    `items` are the item ids that were placed anywhere in that subtree;
    they are not deleted here and are returned so the content owner can
    remove them.
    """

    owner_id: str
    folders: list[str]
    items: list[str] = Field(default_factory=list)
    deleted_count: int


# --- Errors ---


class FolderErrorCode(StrEnum):
    NOT_FOUND = "not_found"
    NOT_OWNED = "not_owned"
    DIFFERENT_OWNERS = "different_owners"
    SELF_MOVE = "self_move"
    CYCLIC_MOVE = "cyclic_move"
    ALREADY_INITIALIZED = "already_initialized"
    STORE_FAILURE = "store_failure"


class FolderError(BaseModel):
    """Failure value returned by folder service operations."""

    code: FolderErrorCode
    detail: str
