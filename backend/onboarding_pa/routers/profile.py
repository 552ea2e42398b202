from fastapi import APIRouter, Depends, Request

from ..dependencies import get_access_control, get_user_port, load_session_principal
from ..schemas.profile import ProfileUpdate
from ..spid.user import SpidLoggedUser, with_user_from_request
from ..use_cases.profile.profile import read_profile, update_profile

router = APIRouter(
    prefix="/profile",
    tags=["profile"],
    dependencies=[Depends(load_session_principal)],
)


@router.get("")
async def get_profile(
    request: Request,
    user_port=Depends(get_user_port),
    access_control=Depends(get_access_control),
):
    async def handler(user: SpidLoggedUser):
        return await read_profile(user_port, access_control, user)

    return await with_user_from_request(request, handler)


@router.patch("")
async def patch_profile(
    payload: ProfileUpdate,
    request: Request,
    user_port=Depends(get_user_port),
    access_control=Depends(get_access_control),
):
    async def handler(user: SpidLoggedUser):
        return await update_profile(user_port, access_control, user, payload.changes())

    return await with_user_from_request(request, handler)
