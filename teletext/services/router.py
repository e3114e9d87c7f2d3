# FILE: teletext/services/router.py
"""
Page router: maps a page ID to the adapter that owns its range
"""
import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

from teletext.errors import AdapterError
from teletext.page_ids import SPECIAL_PAGES, is_valid_page_id, parse_page_id

logger = logging.getLogger(__name__)

# (first page, last page, adapter name); a page's magazine picks its range
ROUTING_TABLE: Tuple[Tuple[int, int, str], ...] = (
    (100, 199, "system"),
    (200, 299, "news"),
    (300, 399, "sports"),
    (400, 419, "markets"),
    (420, 449, "weather"),
    (500, 599, "ai"),
    (600, 699, "games"),
    (700, 799, "settings"),
    (800, 899, "dev"),
)


@dataclass(frozen=True)
class AdapterHandle:
    name: str
    adapter: object
    page_id: str


def adapter_name_for(page_id: str) -> str:
    """Name of the adapter owning page_id (InvalidPageError / AdapterError otherwise)"""
    number = parse_page_id(page_id).number
    if number in SPECIAL_PAGES:
        return "system"
    for first, last, name in ROUTING_TABLE:
        if first <= number <= last:
            return name
    raise AdapterError(f"no adapter mapped for page {page_id}", "router")


class PageRouter:
    """Resolves page IDs against a fixed set of adapter instances"""

    def __init__(self, adapters: Mapping[str, object]):
        self.adapters: Dict[str, object] = dict(adapters)

    def is_valid_page_id(self, page_id: str) -> bool:
        return is_valid_page_id(page_id)

    def resolve(self, page_id: str) -> AdapterHandle:
        name = adapter_name_for(page_id)
        adapter = self.adapters.get(name)
        if adapter is None:
            raise AdapterError(f"adapter '{name}' is not registered", "router")
        logger.debug(f"Routed {page_id} -> {name}")
        return AdapterHandle(name=name, adapter=adapter, page_id=page_id)
