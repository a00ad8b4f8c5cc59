from fastapi import APIRouter, Body, Depends
from typing import Any, Dict, List
import logging

from loanlink.api.dependencies import get_user_service, require
from loanlink.core.authorization import USERS_LIST, USERS_SET_ROLE
from loanlink.helpers.response_builder import convert_objectid
from loanlink.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


# Saves a user on first login, afterwards records the login time
@router.post("/user")
async def upsert_user(
    payload: Dict[str, Any] = Body(...),
    service: UserService = Depends(get_user_service),
):
    return await service.upsert(payload)


@router.get("/users", response_model=List[Dict[str, Any]], dependencies=[Depends(require(USERS_LIST))])
async def list_users(service: UserService = Depends(get_user_service)):
    users = await service.list_all()
    return convert_objectid(users)


@router.get("/users/{email}", response_model=Dict[str, Any])
async def get_user(email: str, service: UserService = Depends(get_user_service)):
    user = await service.find_by_email(email)
    return convert_objectid(user)


@router.get("/user/role/{email}")
async def get_user_role(email: str, service: UserService = Depends(get_user_service)):
    return await service.get_role(email)


# Changes a user's role; body is {"role": "borrower" | "manager" | "admin"}
@router.patch("/users/role/{email}", dependencies=[Depends(require(USERS_SET_ROLE))])
async def update_user_role(
    email: str,
    payload: Dict[str, Any] = Body(...),
    service: UserService = Depends(get_user_service),
):
    return await service.set_role(email, payload.get("role"))
