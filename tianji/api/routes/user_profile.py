from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tianji.api.deps import current_user_id, utc_now
from tianji.api.envelope import ok, to_wire
from tianji.db.session import SessionLocal
from tianji.economy.completeness.service import CompletenessService

router = APIRouter(prefix="/api/user", tags=["user"])

_WIRE_TO_PROFILE_FIELD = {
    "birthDate": "birth_date",
    "birthTime": "birth_time",
    "birthLocation": "birth_location",
    "mbti": "mbti",
    "profession": "profession",
    "currentStatus": "current_status",
    "identity": "identity",
    "energyLevel": "energy_level",
    "wishes": "wishes",
}


class DestinyCardUpdateRequest(BaseModel):
    birthDate: str | None = None
    birthTime: str | None = None
    birthLocation: str | None = None
    mbti: str | None = None
    profession: str | None = None
    currentStatus: str | None = None
    identity: str | None = None
    energyLevel: str | None = None
    wishes: list[str] | None = None


@router.get("/destiny-card")
async def get_destiny_card(user_id: str = Depends(current_user_id)) -> JSONResponse:
    async with SessionLocal.begin() as session:
        card = await CompletenessService.get_destiny_card(session, user_id=user_id)
    return ok(to_wire(card))


@router.put("/destiny-card")
async def update_destiny_card(
    payload: DestinyCardUpdateRequest,
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    changes = {
        _WIRE_TO_PROFILE_FIELD[name]: value
        for name, value in payload.model_dump(exclude_unset=True).items()
    }
    async with SessionLocal.begin() as session:
        card = await CompletenessService.update_profile(
            session,
            user_id=user_id,
            changes=changes,
            now_utc=utc_now(),
        )
    return ok(to_wire(card), message="Destiny card updated")


@router.get("/completeness")
async def get_completeness(user_id: str = Depends(current_user_id)) -> JSONResponse:
    async with SessionLocal.begin() as session:
        result = await CompletenessService.get_completeness(session, user_id=user_id)
    return ok(to_wire(result))
