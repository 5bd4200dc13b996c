"""Read-only controller for the college room catalog."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from campus_booking.controllers.dependencies import get_current_actor
from campus_booking.domain.errors import BookingValidationError
from campus_booking.domain.rooms import (
    RoomInfo,
    get_block,
    get_blocks,
    get_room_info,
    get_rooms_by_block,
)


router = APIRouter(
    prefix="/rooms",
    tags=["rooms"],
    dependencies=[Depends(get_current_actor)],
)


class BlockResponse(BaseModel):
    id: str
    name: str
    floors: list[int]
    description: str


class RoomResponse(BaseModel):
    code: str
    name: str
    type: str
    type_name: str
    block: str
    floor: int

    @classmethod
    def from_info(cls, info: RoomInfo) -> "RoomResponse":
        return cls(**info.to_dict())


@router.get("/blocks", response_model=list[BlockResponse])
async def list_blocks() -> list[BlockResponse]:
    return [BlockResponse(**block.to_dict()) for block in get_blocks()]


@router.get("/blocks/{block_id}", response_model=BlockResponse)
async def block_detail(block_id: str) -> BlockResponse:
    block = get_block(block_id)
    if block is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Block not found")
    return BlockResponse(**block.to_dict())


@router.get("/blocks/{block_id}/rooms", response_model=list[RoomResponse])
async def rooms_in_block(block_id: str) -> list[RoomResponse]:
    if get_block(block_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Block not found")
    return [RoomResponse.from_info(info) for info in get_rooms_by_block(block_id)]


@router.get("/{room_code}", response_model=RoomResponse)
async def room_detail(room_code: str) -> RoomResponse:
    try:
        return RoomResponse.from_info(get_room_info(room_code))
    except BookingValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
