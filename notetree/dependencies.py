from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from .db.session import get_db_session


async def get_current_owner(x_owner_id: Annotated[str, Header()]) -> str:
    """Owner id of the caller, as resolved by the upstream auth layer."""
    return x_owner_id


DBSessionDep = Annotated[AsyncSession, Depends(get_db_session)]

CurrentOwnerDep = Annotated[str, Depends(get_current_owner)]
