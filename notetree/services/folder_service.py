import logging
import uuid
from collections import deque
from sqlalchemy.ext.asyncio import AsyncSession
from ..db.crud import crud_folder
from ..db.models.folder import Folder
from ..schemas.folder import (
    FolderDeletion,
    FolderDetails,
    FolderError,
    FolderErrorCode,
    FolderTreeOut,
)

logger = logging.getLogger(__name__)

ROOT_FOLDER_TITLE = "Root"


def _not_found(detail: str) -> FolderError:
    return FolderError(code=FolderErrorCode.NOT_FOUND, detail=detail)


def _build_tree(
    folders: list[Folder],
    edges: list[tuple[str, str]],
    items_by_folder: dict[str, list[str]] | None = None,
) -> list[FolderTreeOut]:
    nodes: dict[str, FolderTreeOut] = {}
    children_map: dict[str, list[str]] = {}
    for f in folders:
        nodes[f.id] = FolderTreeOut(
            id=f.id,
            title=f.title,
            items=(items_by_folder or {}).get(f.id, []),
            children=[],
        )

    listed: set[str] = set()
    for parent_id, child_id in edges:
        # Dangling edges and edges into another owner's folders are not drawn
        if parent_id in nodes and child_id in nodes:
            children_map.setdefault(parent_id, []).append(child_id)
            listed.add(child_id)

    def sorted_ids(ids: list[str]) -> list[str]:
        return sorted(ids, key=lambda fid: (nodes[fid].title, fid))

    attached: set[str] = set()

    def attach(node_id: str) -> FolderTreeOut:
        attached.add(node_id)
        node = nodes[node_id]
        for cid in sorted_ids(children_map.get(node_id, [])):
            if cid not in attached:
                node.children.append(attach(cid))
        return node

    tree = [attach(fid) for fid in sorted_ids([f for f in nodes if f not in listed])]
    unreached = sorted(fid for fid in nodes if fid not in attached)
    if unreached:
        logger.warning("Folders not reachable from any root: %s", unreached)
    return tree


async def _to_details(folder: Folder, db: AsyncSession) -> FolderDetails:
    return FolderDetails(
        id=folder.id,
        owner_id=folder.owner_id,
        title=folder.title,
        created_at=folder.created_at,
        children=await crud_folder.get_child_ids(db, folder.id),
        items=await crud_folder.get_item_ids(db, folder.id),
    )


async def initialize_root(owner_id: str, db: AsyncSession) -> str | FolderError:
    """
    Create the root folder of a user who has no folders yet.

    Returns:
        The new root folder's id, or ALREADY_INITIALIZED if the user owns
        any folder at all.
    """
    existing = await crud_folder.get_folders(db, owner_id=owner_id, first=True)
    if existing:
        return FolderError(
            code=FolderErrorCode.ALREADY_INITIALIZED,
            detail=f"User {owner_id} has already created folders",
        )

    folder = await crud_folder.create_folder(
        db,
        Folder(id=str(uuid.uuid4()), owner_id=owner_id, title=ROOT_FOLDER_TITLE),
    )
    if folder is None:
        return FolderError(
            code=FolderErrorCode.STORE_FAILURE,
            detail=f"Failed to create root folder for user {owner_id}.",
        )
    logger.info("Initialized root folder %s for user %s", folder.id, owner_id)
    return folder.id


async def create_child(
    owner_id: str, title: str, parent_id: str, db: AsyncSession
) -> str | FolderError:
    """Create a folder owned by owner_id inside parent_id and return its id."""
    parent = await get_owned_folder(parent_id, owner_id, db)
    if isinstance(parent, FolderError):
        return parent

    folder = await crud_folder.create_folder(
        db,
        Folder(id=str(uuid.uuid4()), owner_id=owner_id, title=title),
        parent_id=parent_id,
    )
    if folder is None:
        return FolderError(
            code=FolderErrorCode.STORE_FAILURE,
            detail=f"Failed to create folder {title!r} in folder {parent_id}.",
        )
    return folder.id


async def is_descendant(target_id: str, ancestor_id: str, db: AsyncSession) -> bool:
    """
    Check whether target_id is reachable from ancestor_id through one or more
    child edges.

    Breadth-first over the live tree. The visited set makes the walk finish
    even if the stored edges contain a cycle. A folder listed as a child but
    missing from the store ends its branch.
    """
    queue = deque([ancestor_id])
    visited: set[str] = set()

    while queue:
        current_id = queue.popleft()
        if current_id in visited:
            continue
        visited.add(current_id)

        if not await crud_folder.folder_exists(db, current_id):
            if current_id != ancestor_id:
                logger.warning(
                    "Folder %s found in hierarchy but record is missing", current_id
                )
            continue

        child_ids = await crud_folder.get_child_ids(db, current_id)
        if target_id in child_ids:
            return True
        queue.extend(cid for cid in child_ids if cid not in visited)

    return False


async def collect_descendants(folder_id: str, db: AsyncSession) -> list[str]:
    """
    Return folder_id and every folder below it, depth-first.

    Missing records are skipped (and logged) along with anything that would
    have been under them.
    """
    collected: list[str] = []
    visited: set[str] = set()
    stack = [folder_id]

    while stack:
        current_id = stack.pop()
        if current_id in visited:
            continue
        visited.add(current_id)

        if not await crud_folder.folder_exists(db, current_id):
            if current_id != folder_id:
                logger.warning(
                    "Folder %s found in hierarchy but record is missing", current_id
                )
            continue

        collected.append(current_id)
        child_ids = await crud_folder.get_child_ids(db, current_id)
        stack.extend(cid for cid in reversed(child_ids) if cid not in visited)

    return collected


async def get_parent_id(folder_id: str, db: AsyncSession) -> str | None:
    """Return the folder that lists folder_id as a child, if any."""
    parent_ids = await crud_folder.get_parent_ids(db, folder_id)
    if len(parent_ids) > 1:
        logger.warning("Folder %s has %d parents: %s", folder_id, len(parent_ids), parent_ids)
    return parent_ids[0] if parent_ids else None


async def move_folder(
    folder_id: str, new_parent_id: str, db: AsyncSession
) -> str | FolderError:
    """
    Re-parent folder_id under new_parent_id.

    Checks, first failure wins: both folders exist, they share an owner, the
    folder is not its own target, and the target is not below the folder.

    The edge change is three separate writes: pull the folder out of every
    children set, add it to the new parent, then pull it out of any children
    set other than the new parent's that still lists it. The last pass undoes
    extra parents left by an earlier fault or a concurrent move.
    """
    folder = await crud_folder.get_folders(db, id=folder_id, first=True)
    if not folder:
        return _not_found(f"Folder with ID {folder_id} not found.")
    new_parent = await crud_folder.get_folders(db, id=new_parent_id, first=True)
    if not new_parent:
        return _not_found(f"New parent folder with ID {new_parent_id} not found.")

    if folder.owner_id != new_parent.owner_id:
        return FolderError(
            code=FolderErrorCode.DIFFERENT_OWNERS,
            detail=(
                f"Folders must have the same owner to be moved. Folder {folder_id} "
                f"owner: {folder.owner_id}, new parent {new_parent_id} owner: "
                f"{new_parent.owner_id}"
            ),
        )
    if folder_id == new_parent_id:
        return FolderError(
            code=FolderErrorCode.SELF_MOVE, detail="Cannot move a folder into itself."
        )
    if await is_descendant(new_parent_id, folder_id, db):
        return FolderError(
            code=FolderErrorCode.CYCLIC_MOVE,
            detail=f"Cannot move folder {folder_id} into its own descendant {new_parent_id}.",
        )

    removed = await crud_folder.remove_child(db, folder_id)
    logger.debug("Move %s: detached from %d parent(s)", folder_id, removed)

    added = await crud_folder.add_child(db, new_parent_id, folder_id)
    logger.debug("Move %s: attached to %s (%d written)", folder_id, new_parent_id, added)
    if not added and new_parent_id not in await crud_folder.get_parent_ids(db, folder_id):
        return FolderError(
            code=FolderErrorCode.STORE_FAILURE,
            detail=f"Failed to add folder {folder_id} to folder {new_parent_id}.",
        )

    stray = await crud_folder.remove_child(
        db, folder_id, exclude_parent_id=new_parent_id
    )
    if stray:
        logger.warning(
            "Move %s: removed %d additional parent edge(s)", folder_id, stray
        )

    return folder_id


async def rename_folder(
    folder_id: str, title: str, db: AsyncSession
) -> FolderDetails | FolderError:
    folder = await crud_folder.get_folders(db, id=folder_id, first=True)
    if not folder:
        return _not_found(f"Folder with ID {folder_id} not found.")

    folder.title = title
    folder = await crud_folder.update_folder(db, folder)
    return await _to_details(folder, db)


async def delete_folder(folder_id: str, db: AsyncSession) -> FolderDeletion | FolderError:
    """
    Delete a folder together with everything below it.

    Items placed in the deleted folders are not touched; their ids are
    returned so the caller can delete the content they refer to.

    Returns:
        FolderDeletion listing the removed folders and their items

    Errors:
        NOT_FOUND if the folder does not exist, STORE_FAILURE if nothing was
        removed. A partial delete is not rolled back; it shows up as
        deleted_count < len(folders).
    """
    folder = await crud_folder.get_folders(db, id=folder_id, first=True)
    if not folder:
        return _not_found(f"Folder with ID {folder_id} not found.")
    owner_id = folder.owner_id

    subtree = await collect_descendants(folder_id, db)
    items = await crud_folder.get_item_ids(db, subtree)

    await crud_folder.remove_child(db, folder_id)
    deleted = await crud_folder.delete_folders(db, subtree)

    if deleted == 0:
        return FolderError(
            code=FolderErrorCode.STORE_FAILURE,
            detail=f"Failed to delete folder {folder_id} or its contents.",
        )
    if deleted < len(subtree):
        logger.warning(
            "Deleted %d of %d folders under %s", deleted, len(subtree), folder_id
        )
    logger.info("Deleted folder %s with %d folder(s)", folder_id, deleted)

    return FolderDeletion(
        owner_id=owner_id, folders=subtree, items=items, deleted_count=deleted
    )


async def place_item(item_id: str, folder_id: str, db: AsyncSession) -> FolderError | None:
    """
    Put item_id into folder_id, taking it out of whichever folder held it.
    """
    if not await crud_folder.folder_exists(db, folder_id):
        return _not_found(f"Target folder with ID {folder_id} not found.")

    holders = await crud_folder.get_item_folder_ids(db, item_id)
    if folder_id in holders:
        return None

    for holder_id in holders:
        await crud_folder.remove_item(db, holder_id, item_id)

    if not await crud_folder.add_item(db, folder_id, item_id):
        return FolderError(
            code=FolderErrorCode.STORE_FAILURE,
            detail=f"Failed to insert item {item_id} into folder {folder_id}.",
        )
    return None


async def find_item_folder(item_id: str, db: AsyncSession) -> str | None:
    """Return the folder currently holding item_id, if any."""
    holders = await crud_folder.get_item_folder_ids(db, item_id)
    return holders[0] if holders else None


async def remove_item(item_id: str, db: AsyncSession) -> FolderError | None:
    holders = await crud_folder.get_item_folder_ids(db, item_id)
    if not holders:
        return _not_found(f"Item with ID {item_id} not found in any folder.")

    removed = 0
    for holder_id in holders:
        removed += await crud_folder.remove_item(db, holder_id, item_id)
    if not removed:
        return FolderError(
            code=FolderErrorCode.STORE_FAILURE,
            detail=f"Failed to remove item {item_id} from folder {holders[0]}.",
        )
    return None


# --- Queries ---


async def get_folder_details(
    folder_id: str, db: AsyncSession
) -> FolderDetails | FolderError:
    folder = await crud_folder.get_folders(db, id=folder_id, first=True)
    if not folder:
        return _not_found(f"Folder with ID {folder_id} not found.")
    return await _to_details(folder, db)


async def get_folder_children(folder_id: str, db: AsyncSession) -> list[str] | FolderError:
    if not await crud_folder.folder_exists(db, folder_id):
        return _not_found(f"Folder with ID {folder_id} not found.")
    return await crud_folder.get_child_ids(db, folder_id)


async def get_folder_items(folder_id: str, db: AsyncSession) -> list[str] | FolderError:
    if not await crud_folder.folder_exists(db, folder_id):
        return _not_found(f"Folder with ID {folder_id} not found.")
    return await crud_folder.get_item_ids(db, folder_id)


async def get_owned_folder(
    folder_id: str, owner_id: str, db: AsyncSession
) -> Folder | FolderError:
    folder = await crud_folder.get_folders(db, id=folder_id, first=True)
    if not folder:
        return _not_found(f"Folder with ID {folder_id} not found.")
    if folder.owner_id != owner_id:
        return FolderError(
            code=FolderErrorCode.NOT_OWNED,
            detail=f"Folder with ID {folder_id} is not owned by the user.",
        )
    return folder


async def get_root_folder_id(owner_id: str, db: AsyncSession) -> str | FolderError:
    """
    Return the user's root folder, creating it if the user has no folders.
    """
    root_ids = await crud_folder.get_root_ids(db, owner_id)
    if len(root_ids) > 1:
        logger.warning("User %s has %d root folders: %s", owner_id, len(root_ids), root_ids)
    if root_ids:
        return root_ids[0]

    existing = await crud_folder.get_folders(
        db, owner_id=owner_id, order_by="created_at", limit=None
    )
    if existing:
        # Every folder is listed as someone's child, so the stored edges form
        # a loop. Fall back to the folder titled as a root.
        logger.warning("User %s has folders but no folder without a parent", owner_id)
        named_root = next((f for f in existing if f.title == ROOT_FOLDER_TITLE), None)
        return (named_root or existing[0]).id

    return await initialize_root(owner_id, db)


async def get_all_folders(owner_id: str, db: AsyncSession) -> list[FolderDetails]:
    folders = await crud_folder.get_folders(db, owner_id=owner_id, limit=None)
    return [await _to_details(f, db) for f in folders]


async def get_tree(owner_id: str, db: AsyncSession) -> list[FolderTreeOut]:
    folders = await crud_folder.get_folders(db, owner_id=owner_id, limit=None)
    edges = await crud_folder.get_edges(db, owner_id)
    items_by_folder = {f.id: await crud_folder.get_item_ids(db, f.id) for f in folders}
    return _build_tree(folders, edges, items_by_folder)
