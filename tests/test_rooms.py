from __future__ import annotations

import pytest

from campus_booking.domain.constraints import BookingRules, normalize_room_code
from campus_booking.domain.errors import BookingValidationError
from campus_booking.domain.rooms import get_block, get_blocks, get_room_info, get_rooms_by_block, parse_room_code
from campus_booking.utils.config import get_settings


def test_parse_room_code_splits_components():
    parsed = parse_room_code("a304")
    assert (parsed.block, parsed.floor, parsed.number) == ("A", 3, 4)
    assert parsed.code == "A304"


@pytest.mark.parametrize("code", ["", "A34", "304A", "AB304"])
def test_parse_room_code_rejects_malformed(code):
    with pytest.raises(BookingValidationError):
        parse_room_code(code)


def test_named_room_info():
    info = get_room_info("B201")
    assert info.name == "AIR Lab"
    assert info.room_type == "ai_lab"
    assert info.floor == 2


def test_unlisted_room_defaults_to_classroom():
    info = get_room_info("A304")
    assert info.room_type == "classroom"
    assert info.name == "Room A304"


def test_blocks_catalog():
    assert [block.block_id for block in get_blocks()] == ["A", "B", "C", "D", "E"]
    assert get_block("c").floors == (1, 2, 3)
    assert get_block("Z") is None
    assert [room.code for room in get_rooms_by_block("C")] == ["C101", "C102", "C201", "C301"]
    assert get_rooms_by_block("Z") == []


@pytest.mark.parametrize("code", ["A304", "e100", "Z999", "A34", "AA30", "3A04", "A3045"])
def test_catalog_and_request_validation_agree_on_room_codes(code):
    rules = BookingRules.from_settings(get_settings())
    try:
        parse_room_code(code)
        parsed = True
    except BookingValidationError:
        parsed = False
    try:
        normalize_room_code(code, rules)
        normalized = True
    except BookingValidationError:
        normalized = False
    assert parsed == normalized
