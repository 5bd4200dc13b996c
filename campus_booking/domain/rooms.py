"""Static catalog of college blocks and named rooms."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from campus_booking.domain.errors import BookingValidationError
from campus_booking.utils.config import ROOM_CODE_REGEX


_ROOM_CODE_PATTERN = re.compile(ROOM_CODE_REGEX)


@dataclass(frozen=True)
class Block:
    block_id: str
    name: str
    floors: tuple[int, ...]
    description: str

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.block_id,
            "name": self.name,
            "floors": list(self.floors),
            "description": self.description,
        }


@dataclass(frozen=True)
class RoomCode:
    block: str
    floor: int
    number: int

    @property
    def code(self) -> str:
        return f"{self.block}{self.floor}{self.number:02d}"


@dataclass(frozen=True)
class RoomInfo:
    code: str
    name: str
    room_type: str
    room_type_name: str
    block: str
    floor: int

    def to_dict(self) -> dict[str, object]:
        return {
            "code": self.code,
            "name": self.name,
            "type": self.room_type,
            "type_name": self.room_type_name,
            "block": self.block,
            "floor": self.floor,
        }


COLLEGE_BLOCKS: dict[str, Block] = {
    "A": Block("A", "A Block", (1, 2, 3, 4, 5), "Main Academic Block"),
    "B": Block("B", "B Block", (1, 2, 3, 4), "Laboratory Block"),
    "C": Block("C", "C Block", (1, 2, 3), "Computer Science Block"),
    "D": Block("D", "D Block", (1, 2, 3, 4), "Engineering Block"),
    "E": Block("E", "E Block", (1, 2), "Administrative Block"),
}

ROOM_TYPES: dict[str, str] = {
    "classroom": "Classroom",
    "computer_lab": "Computer Lab",
    "ai_lab": "AI Research Lab",
    "lecture_hall": "Lecture Hall",
    "physics_lab": "Physics Lab",
    "chemistry_lab": "Chemistry Lab",
}

# code -> (room type, display name)
NAMED_ROOMS: dict[str, tuple[str, str]] = {
    "A101": ("lecture_hall", "Main Auditorium"),
    "A201": ("lecture_hall", "Lecture Hall A"),
    "A301": ("classroom", "Classroom A301"),
    "A401": ("classroom", "Classroom A401"),
    "B201": ("ai_lab", "AIR Lab"),
    "B202": ("computer_lab", "SCPS Lab"),
    "B203": ("computer_lab", "CSE Lab 1"),
    "B301": ("physics_lab", "Physics Lab 1"),
    "B302": ("chemistry_lab", "Chemistry Lab 1"),
    "B401": ("computer_lab", "Advanced Computing Lab"),
    "C101": ("computer_lab", "Programming Lab 1"),
    "C102": ("computer_lab", "Programming Lab 2"),
    "C201": ("ai_lab", "Machine Learning Lab"),
    "C301": ("computer_lab", "Software Engineering Lab"),
    "D101": ("physics_lab", "Electronics Lab"),
    "D201": ("computer_lab", "VLSI Lab"),
    "D301": ("physics_lab", "Communication Lab"),
}


def parse_room_code(code: str) -> RoomCode:
    match = _ROOM_CODE_PATTERN.fullmatch((code or "").strip().upper())
    if match is None:
        raise BookingValidationError("room", f"Invalid room code: {code!r}")
    return RoomCode(
        block=match.group("block"),
        floor=int(match.group("floor")),
        number=int(match.group("number")),
    )


def get_blocks() -> list[Block]:
    return list(COLLEGE_BLOCKS.values())


def get_block(block_id: str) -> Optional[Block]:
    return COLLEGE_BLOCKS.get((block_id or "").upper())


def get_room_info(code: str) -> RoomInfo:
    """Describe a room; codes outside the named set are generic classrooms."""
    parsed = parse_room_code(code)
    room_type, name = NAMED_ROOMS.get(parsed.code, ("classroom", f"Room {parsed.code}"))
    return RoomInfo(
        code=parsed.code,
        name=name,
        room_type=room_type,
        room_type_name=ROOM_TYPES[room_type],
        block=parsed.block,
        floor=parsed.floor,
    )


def get_rooms_by_block(block_id: str) -> list[RoomInfo]:
    block = get_block(block_id)
    if block is None:
        return []
    return [
        get_room_info(code)
        for code in sorted(NAMED_ROOMS)
        if code.startswith(block.block_id)
    ]
