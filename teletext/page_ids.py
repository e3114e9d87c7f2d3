# FILE: teletext/page_ids.py
"""
Page-ID grammar

    page-id     = magazine-id [ "-" sub-index [ "-" page-index ] ]
    magazine-id = 3DIGIT   (100-899, or one of 404 / 666 / 999)
    sub-index   = 1*2DIGIT (1-99)
    page-index  = 1*2DIGIT (1-99)
"""
import re
from typing import NamedTuple, Optional, Tuple

from teletext.errors import InvalidPageError

SPECIAL_PAGES = frozenset({404, 666, 999})
MIN_PAGE = 100
MAX_PAGE = 899
MAX_INDEX = 99

_PAGE_ID_RE = re.compile(r"^(\d{3})(?:-(\d{1,2})(?:-(\d{1,2}))?)?$")


class PageAddress(NamedTuple):
    number: int
    sub_index: Optional[int] = None
    page_index: Optional[int] = None

    @property
    def magazine(self) -> int:
        return self.number // 100

    def segments(self) -> Tuple[int, ...]:
        return tuple(s for s in (self.number, self.sub_index, self.page_index) if s is not None)

    def __str__(self) -> str:
        return "-".join(str(s) for s in self.segments())


def _valid_base(number: int) -> bool:
    return MIN_PAGE <= number <= MAX_PAGE or number in SPECIAL_PAGES


def parse_page_id(page_id: str) -> PageAddress:
    """Parse a page ID, raising InvalidPageError on bad syntax or range"""
    if not isinstance(page_id, str):
        raise InvalidPageError(str(page_id), "page ID must be a string")

    match = _PAGE_ID_RE.match(page_id)
    if match is None:
        raise InvalidPageError(page_id)

    number = int(match.group(1))
    if not _valid_base(number):
        raise InvalidPageError(page_id)

    indices = [int(g) for g in match.groups()[1:] if g is not None]
    for index in indices:
        if not 1 <= index <= MAX_INDEX:
            raise InvalidPageError(page_id, "sub-page indices must be 1-99")

    return PageAddress(number, *indices)


def is_valid_page_id(page_id: str) -> bool:
    try:
        parse_page_id(page_id)
    except InvalidPageError:
        return False
    return True


def normalize_page_id(page_id: str) -> str:
    """Canonical spelling of a page ID: "500-02" becomes "500-2"."""
    return str(parse_page_id(page_id))


def base_page(page_id: str) -> str:
    """The 3-digit magazine page a (sub-)page belongs to"""
    return str(parse_page_id(page_id).number)


def advance_page_id(page_id: str, n: int) -> str:
    """
    Advance a page ID by n, incrementing its last segment.

    A bare 3-digit page never rolls over into the next magazine: pages past
    the end of the magazine continue as sub-pages of its last page
    ("598" + 3 -> "599-2"). A sub-index past 99 continues as page-indices of
    sub-page 99. Running past page-index 99 raises InvalidPageError.
    """
    if n < 0:
        raise ValueError("page IDs only advance forwards")

    address = parse_page_id(page_id)
    if n == 0:
        return str(address)

    if address.sub_index is None:
        magazine_end = address.magazine * 100 + 99
        if address.number in SPECIAL_PAGES:
            magazine_end = address.number
        room = magazine_end - address.number
        if n <= room:
            return str(PageAddress(address.number + n))
        return advance_page_id(f"{magazine_end}-1", n - room - 1)

    if address.page_index is None:
        room = MAX_INDEX - address.sub_index
        if n <= room:
            return str(PageAddress(address.number, address.sub_index + n))
        return advance_page_id(f"{address.number}-{MAX_INDEX}-1", n - room - 1)

    target = address.page_index + n
    if target > MAX_INDEX:
        raise InvalidPageError(page_id, f"cannot advance {n} pages past page-index 99")
    return str(PageAddress(address.number, address.sub_index, target))
