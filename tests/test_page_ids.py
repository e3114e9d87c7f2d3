# FILE: tests/test_page_ids.py

import pytest

from teletext.errors import InvalidPageError
from teletext.page_ids import (
    PageAddress,
    advance_page_id,
    base_page,
    is_valid_page_id,
    normalize_page_id,
    parse_page_id,
)


@pytest.mark.parametrize("page_id", ["100", "899", "404", "666", "999", "500-1", "201-3-2", "599-99-99"])
def test_valid_page_ids(page_id):
    assert is_valid_page_id(page_id)


@pytest.mark.parametrize("page_id", ["99", "900", "920", "1000", "abc", "", "100-0", "100-100",
                                     "100-1-0", "100-1-1-1", "100-", " 100", "10a"])
def test_invalid_page_ids(page_id):
    assert not is_valid_page_id(page_id)
    with pytest.raises(InvalidPageError):
        parse_page_id(page_id)


def test_parse_segments():
    """Test parsing into magazine, sub-index and page-index"""
    address = parse_page_id("513-2-7")
    assert address == PageAddress(513, 2, 7)
    assert address.magazine == 5
    assert str(address) == "513-2-7"
    assert base_page("513-2-7") == "513"


def test_invalid_page_error_message():
    with pytest.raises(InvalidPageError) as exc_info:
        parse_page_id("920")
    assert exc_info.value.status_code == 400
    assert exc_info.value.code == "INVALID_PAGE"
    assert "920" in exc_info.value.message


def test_advance_within_magazine():
    assert advance_page_id("500", 0) == "500"
    assert advance_page_id("500", 3) == "503"
    assert advance_page_id("500-1", 4) == "500-5"
    assert advance_page_id("201-3-1", 2) == "201-3-3"


def test_advance_never_leaves_magazine():
    """Test that running past x99 continues as sub-pages of x99"""
    assert advance_page_id("598", 1) == "599"
    assert advance_page_id("598", 2) == "599-1"
    assert advance_page_id("598", 3) == "599-2"
    assert base_page(advance_page_id("598", 50)) == "599"


def test_advance_sub_index_rollover():
    assert advance_page_id("500-98", 1) == "500-99"
    assert advance_page_id("500-98", 2) == "500-99-1"
    assert advance_page_id("500-98", 3) == "500-99-2"


def test_advance_past_last_page_index():
    with pytest.raises(InvalidPageError):
        advance_page_id("500-1-99", 1)


def test_advance_rejects_negative():
    with pytest.raises(ValueError):
        advance_page_id("500", -1)


@pytest.mark.parametrize("page_id, expected", [("500-02", "500-2"), ("201-03-07", "201-3-7"), ("100", "100")])
def test_normalize_page_id(page_id, expected):
    assert normalize_page_id(page_id) == expected
