from fastapi import APIRouter, HTTPException, status
from ..core.config import settings
from ..dependencies import DBSessionDep, CurrentOwnerDep
from ..schemas.folder import (
    FolderCreate,
    FolderDeletion,
    FolderDetails,
    FolderError,
    FolderErrorCode,
    FolderIdOut,
    FolderMove,
    FolderRename,
    FolderRootOut,
    FolderTreeOut,
)
from ..services import folder_service

router = APIRouter(prefix="/folders", tags=["Folders"])

_ERROR_STATUS = {
    FolderErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FolderErrorCode.NOT_OWNED: status.HTTP_403_FORBIDDEN,
    FolderErrorCode.DIFFERENT_OWNERS: status.HTTP_400_BAD_REQUEST,
    FolderErrorCode.SELF_MOVE: status.HTTP_400_BAD_REQUEST,
    FolderErrorCode.CYCLIC_MOVE: status.HTTP_400_BAD_REQUEST,
    FolderErrorCode.ALREADY_INITIALIZED: status.HTTP_409_CONFLICT,
    FolderErrorCode.STORE_FAILURE: status.HTTP_409_CONFLICT,
}


def _unwrap(result):
    if isinstance(result, FolderError):
        raise HTTPException(status_code=_ERROR_STATUS[result.code], detail=result.detail)
    return result


@router.post("/root", response_model=FolderRootOut, status_code=status.HTTP_201_CREATED)
async def initialize_root_folder(db_session: DBSessionDep, owner_id: CurrentOwnerDep):
    root_id = _unwrap(await folder_service.initialize_root(owner_id, db_session))
    return FolderRootOut(root_folder_id=root_id)


@router.get("/root", response_model=FolderRootOut)
async def read_root_folder(db_session: DBSessionDep, owner_id: CurrentOwnerDep):
    """Return the caller's root folder id, creating the root on first use."""
    root_id = _unwrap(await folder_service.get_root_folder_id(owner_id, db_session))
    return FolderRootOut(root_folder_id=root_id)


@router.get("/", response_model=list[FolderDetails])
async def read_all_folders(db_session: DBSessionDep, owner_id: CurrentOwnerDep):
    return await folder_service.get_all_folders(owner_id, db_session)


@router.get("/tree", response_model=list[FolderTreeOut])
async def read_folder_tree(db_session: DBSessionDep, owner_id: CurrentOwnerDep):
    return await folder_service.get_tree(owner_id, db_session)


@router.post("/", response_model=FolderDetails, status_code=status.HTTP_201_CREATED)
async def create_folder(
    payload: FolderCreate, db_session: DBSessionDep, owner_id: CurrentOwnerDep
):
    folder_id = _unwrap(
        await folder_service.create_child(
            owner_id, payload.title, payload.parent_id, db_session
        )
    )
    return _unwrap(await folder_service.get_folder_details(folder_id, db_session))


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_item(item_id: str, db_session: DBSessionDep, owner_id: CurrentOwnerDep):
    """Take an item out of whichever folder holds it."""
    holder_id = await folder_service.find_item_folder(item_id, db_session)
    if holder_id is not None:
        _unwrap(await folder_service.get_owned_folder(holder_id, owner_id, db_session))
    _unwrap(await folder_service.remove_item(item_id, db_session))


@router.get("/{folder_id}", response_model=FolderDetails)
async def read_folder_by_id(
    folder_id: str, db_session: DBSessionDep, owner_id: CurrentOwnerDep
):
    _unwrap(await folder_service.get_owned_folder(folder_id, owner_id, db_session))
    return _unwrap(await folder_service.get_folder_details(folder_id, db_session))


@router.get("/{folder_id}/children", response_model=list[str])
async def read_folder_children(
    folder_id: str, db_session: DBSessionDep, owner_id: CurrentOwnerDep
):
    _unwrap(await folder_service.get_owned_folder(folder_id, owner_id, db_session))
    return _unwrap(await folder_service.get_folder_children(folder_id, db_session))


@router.get("/{folder_id}/items", response_model=list[str])
async def read_folder_items(
    folder_id: str, db_session: DBSessionDep, owner_id: CurrentOwnerDep
):
    _unwrap(await folder_service.get_owned_folder(folder_id, owner_id, db_session))
    return _unwrap(await folder_service.get_folder_items(folder_id, db_session))


@router.patch("/{folder_id}", response_model=FolderDetails)
async def rename_folder(
    folder_id: str,
    payload: FolderRename,
    db_session: DBSessionDep,
    owner_id: CurrentOwnerDep,
):
    _unwrap(await folder_service.get_owned_folder(folder_id, owner_id, db_session))
    return _unwrap(
        await folder_service.rename_folder(folder_id, payload.title, db_session)
    )


@router.post("/{folder_id}/move", response_model=FolderIdOut)
async def move_folder(
    folder_id: str,
    payload: FolderMove,
    db_session: DBSessionDep,
    owner_id: CurrentOwnerDep,
):
    _unwrap(await folder_service.get_owned_folder(folder_id, owner_id, db_session))
    _unwrap(
        await folder_service.get_owned_folder(
            payload.new_parent_id, owner_id, db_session
        )
    )
    moved_id = _unwrap(
        await folder_service.move_folder(folder_id, payload.new_parent_id, db_session)
    )
    return FolderIdOut(folder_id=moved_id)


@router.delete("/{folder_id}", response_model=FolderDeletion)
async def delete_folder(folder_id: str, db_session: DBSessionDep, owner_id: CurrentOwnerDep):
    """
    Delete a folder and every folder below it.
    The response lists the item ids that were inside, for the content
    service to delete.
    """
    _unwrap(await folder_service.get_owned_folder(folder_id, owner_id, db_session))
    if not settings.ALLOW_ROOT_DELETE:
        if await folder_service.get_parent_id(folder_id, db_session) is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete the root folder",
            )
    return _unwrap(await folder_service.delete_folder(folder_id, db_session))


@router.put("/{folder_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def place_item(
    folder_id: str, item_id: str, db_session: DBSessionDep, owner_id: CurrentOwnerDep
):
    _unwrap(await folder_service.get_owned_folder(folder_id, owner_id, db_session))
    holder_id = await folder_service.find_item_folder(item_id, db_session)
    if holder_id is not None and holder_id != folder_id:
        _unwrap(await folder_service.get_owned_folder(holder_id, owner_id, db_session))
    _unwrap(await folder_service.place_item(item_id, folder_id, db_session))
