from fastapi import APIRouter, Query

from ..services import search
from ..services.search import PublicAdministration

router = APIRouter(tags=["public-administrations"])


@router.get("/public-administrations", response_model=list[PublicAdministration])
async def get_public_administrations(
    search_string: str = Query(..., alias="search", min_length=3),
) -> list[PublicAdministration]:
    return await search.search_public_administrations(search_string)
