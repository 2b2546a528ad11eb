"""
Folder store.

Every write function commits on its own, so each call is atomic for the one
record or edge it touches and nothing more. No function here checks tree
invariants; that is the job of services.folder_service.
"""

from datetime import datetime, timezone
from typing import Literal
from sqlalchemy import Table, delete, exists, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from ..models.folder import Folder
from ..models.association_tables import folder_children, folder_items
from .crud_base import (
    base_get,
    base_update,
    _validate_pagination,
    _validate_order_by_field,
)


async def get_folders(
    db: AsyncSession,
    *,
    # model params
    id: str | list[str] | None = None,
    owner_id: str | None = None,
    title: str | None = None,
    # Pagination
    limit: int | None = 100,
    offset: int = 0,
    # Ordering
    order_by: str = "title",
    order_direction: Literal["asc", "desc"] = "asc",
    # Return type control
    first: bool = False,
) -> list[Folder] | Folder | None:
    """
    Retrieve folders with flexible filtering, pagination, and ordering.

    Args:
        id: Single folder ID or list of folder IDs for IN clause
        owner_id: Filter by owning user
        title: Filter by exact folder title
        limit: Maximum number of results (None = unlimited, default 100)
        offset: Number of results to skip (for pagination)
        order_by: Field to order by
        order_direction: Sort direction ('asc' or 'desc')
        first: If True, return single Folder or None instead of list

    Returns:
        - If first=True: Single Folder instance or None
        - If first=False: List of Folder instances (empty list if no matches)
    """
    _validate_pagination(limit, offset)

    if order_direction not in ("asc", "desc"):
        raise ValueError("order_direction must be 'asc' or 'desc'")

    _validate_order_by_field(Folder, order_by)

    filters = {}
    if id is not None:
        filters["id"] = id
    if owner_id is not None:
        filters["owner_id"] = owner_id
    if title is not None:
        filters["title"] = title

    return await base_get(
        db,
        Folder,
        filters=filters,
        limit=limit,
        offset=offset,
        order_by=order_by,
        order_direction=order_direction,
        first=first,
    )


async def folder_exists(db: AsyncSession, folder_id: str) -> bool:
    result = await db.execute(select(exists().where(Folder.id == folder_id)))
    return bool(result.scalar())


async def create_folder(
    db_session: AsyncSession, folder_to_create: Folder, parent_id: str | None = None
) -> Folder | None:
    """
    Creates a new folder in the database.

    When parent_id is given, the parent's child edge is written in the same
    commit as the folder itself.

    Args:
        db_session: Database session
        folder_to_create: Folder instance to create
        parent_id: Folder that should list the new folder as a child

    Returns:
        The created and refreshed Folder instance, or None if the database
        rejected the write (the parent was deleted meanwhile, or the id is
        taken). Nothing is written in that case.
    """
    db_session.add(folder_to_create)
    try:
        if parent_id is not None:
            await db_session.flush()
            await db_session.execute(
                insert(folder_children).values(
                    parent_id=parent_id,
                    child_id=folder_to_create.id,
                    created_at=datetime.now(timezone.utc),
                )
            )
        await db_session.commit()
    except IntegrityError:
        await db_session.rollback()
        return None
    await db_session.refresh(folder_to_create)
    return folder_to_create


async def update_folder(db_session: AsyncSession, folder: Folder) -> Folder:
    """
    Updates a folder instance in the database.

    Args:
        db_session: Database session
        folder: The folder instance with modified attributes

    Returns:
        The refreshed folder instance
    """
    return await base_update(db_session, folder)


async def delete_folders(db_session: AsyncSession, folder_ids: list[str]) -> int:
    """
    Deletes the given folders and the edge rows they own in one commit.

    Edges pointing *at* these folders from other parents are left alone;
    callers detach those first.

    Returns:
        Number of folder records removed
    """
    if not folder_ids:
        return 0

    await db_session.execute(
        delete(folder_items).where(folder_items.c.folder_id.in_(folder_ids))
    )
    await db_session.execute(
        delete(folder_children).where(folder_children.c.parent_id.in_(folder_ids))
    )
    result = await db_session.execute(delete(Folder).where(Folder.id.in_(folder_ids)))
    await db_session.commit()
    return result.rowcount


# --- Child edges ---


async def get_child_ids(db: AsyncSession, parent_id: str) -> list[str]:
    """Return the ids listed in a folder's children set."""
    result = await db.execute(
        select(folder_children.c.child_id)
        .where(folder_children.c.parent_id == parent_id)
        .order_by(folder_children.c.created_at, folder_children.c.child_id)
    )
    return list(result.scalars().all())


async def get_parent_ids(db: AsyncSession, child_id: str) -> list[str]:
    """Return every folder whose children set contains child_id."""
    result = await db.execute(
        select(folder_children.c.parent_id)
        .where(folder_children.c.child_id == child_id)
        .order_by(folder_children.c.parent_id)
    )
    return list(result.scalars().all())


async def get_edges(db: AsyncSession, owner_id: str) -> list[tuple[str, str]]:
    """Return (parent_id, child_id) pairs for every folder owned by owner_id."""
    result = await db.execute(
        select(folder_children.c.parent_id, folder_children.c.child_id)
        .join(Folder, Folder.id == folder_children.c.parent_id)
        .where(Folder.owner_id == owner_id)
        .order_by(folder_children.c.created_at, folder_children.c.child_id)
    )
    return [(row.parent_id, row.child_id) for row in result.all()]


async def get_root_ids(db: AsyncSession, owner_id: str) -> list[str]:
    """Return owned folders that no folder lists as a child, oldest first."""
    listed_as_child = select(folder_children.c.child_id)
    result = await db.execute(
        select(Folder.id)
        .where(Folder.owner_id == owner_id, Folder.id.not_in(listed_as_child))
        .order_by(Folder.created_at, Folder.id)
    )
    return list(result.scalars().all())


async def add_child(db: AsyncSession, parent_id: str, child_id: str) -> int:
    """
    Add child_id to parent_id's children set.

    Returns:
        1 if the edge was written, 0 if it was already present or the write
        was rejected by the database
    """
    return await _add_edge(
        db,
        folder_children,
        parent_id=parent_id,
        child_id=child_id,
    )


async def remove_child(
    db: AsyncSession,
    child_id: str,
    *,
    parent_id: str | None = None,
    exclude_parent_id: str | None = None,
) -> int:
    """
    Remove child_id from children sets.

    With no parent arguments the id is pulled from every folder that lists it.
    parent_id limits the removal to one folder; exclude_parent_id keeps the
    edge of that one folder.

    Returns:
        Number of edges removed
    """
    statement = delete(folder_children).where(folder_children.c.child_id == child_id)
    if parent_id is not None:
        statement = statement.where(folder_children.c.parent_id == parent_id)
    if exclude_parent_id is not None:
        statement = statement.where(folder_children.c.parent_id != exclude_parent_id)
    result = await db.execute(statement)
    await db.commit()
    return result.rowcount


# --- Item edges ---


async def get_item_ids(db: AsyncSession, folder_id: str | list[str]) -> list[str]:
    """Return the item ids placed in one folder, or in any of a list of folders."""
    query = select(folder_items.c.item_id)
    if isinstance(folder_id, list):
        query = query.where(folder_items.c.folder_id.in_(folder_id))
    else:
        query = query.where(folder_items.c.folder_id == folder_id)
    result = await db.execute(
        query.order_by(folder_items.c.created_at, folder_items.c.item_id)
    )
    return list(result.scalars().all())


async def get_item_folder_ids(db: AsyncSession, item_id: str) -> list[str]:
    """Return every folder whose items set contains item_id."""
    result = await db.execute(
        select(folder_items.c.folder_id)
        .where(folder_items.c.item_id == item_id)
        .order_by(folder_items.c.folder_id)
    )
    return list(result.scalars().all())


async def add_item(db: AsyncSession, folder_id: str, item_id: str) -> int:
    """Add item_id to a folder's items set. Returns 1 if written, 0 otherwise."""
    return await _add_edge(db, folder_items, folder_id=folder_id, item_id=item_id)


async def remove_item(db: AsyncSession, folder_id: str, item_id: str) -> int:
    """Remove item_id from one folder's items set. Returns rows removed."""
    result = await db.execute(
        delete(folder_items).where(
            folder_items.c.folder_id == folder_id,
            folder_items.c.item_id == item_id,
        )
    )
    await db.commit()
    return result.rowcount


async def _add_edge(db: AsyncSession, table: Table, **values: str) -> int:
    present = await db.execute(
        select(exists().where(*(table.c[key] == value for key, value in values.items())))
    )
    if present.scalar():
        return 0

    try:
        await db.execute(
            insert(table).values(created_at=datetime.now(timezone.utc), **values)
        )
        await db.commit()
    except IntegrityError:
        # Lost a race against an identical insert, or the owning folder is gone
        await db.rollback()
        return 0
    return 1
