# FILE: teletext/models/page.py
"""
Page models: the 24x40 grid page and its navigation links
"""
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from teletext.page_ids import is_valid_page_id
from teletext.services.grid import PAGE_COLS, PAGE_ROWS, visible_width

LinkColor = Literal["red", "green", "yellow", "blue"]


class Link(BaseModel):
    """Navigation affordance shown on a page (usually a colored button)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    label: str
    target_page: str
    color: Optional[LinkColor] = None

    @field_validator("target_page")
    @classmethod
    def validate_target_page(cls, v):
        if not is_valid_page_id(v):
            raise ValueError(f"link target {v!r} is not a valid page ID")
        return v


class Continuation(BaseModel):
    """Links between the pages of one paginated response"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    current_page: str
    next_page: Optional[str] = None
    previous_page: Optional[str] = None
    total_pages: int = Field(..., ge=2)
    current_index: int = Field(..., ge=0)

    def to_meta(self) -> Dict[str, Any]:
        # Missing neighbours are left out rather than sent as null
        return self.model_dump(by_alias=True, exclude_none=True)


class GridPage(BaseModel):
    """One screen of content: exactly 24 rows of exactly 40 visible cells"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    title: str
    rows: List[str]
    links: List[Link] = Field(default_factory=list)
    meta: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        if not is_valid_page_id(v):
            raise ValueError(f"{v!r} is not a valid page ID")
        return v

    @field_validator("rows")
    @classmethod
    def validate_rows(cls, v):
        if len(v) != PAGE_ROWS:
            raise ValueError(f"page must have exactly {PAGE_ROWS} rows, got {len(v)}")
        for i, row in enumerate(v):
            width = visible_width(row)
            if width != PAGE_COLS:
                raise ValueError(f"row {i} is {width} cells wide, expected {PAGE_COLS}")
        return v

    @property
    def continuation(self) -> Optional[Dict[str, Any]]:
        return self.meta.get("continuation")

    def link_to(self, label: str) -> Optional[Link]:
        for link in self.links:
            if link.label == label:
                return link
        return None

    def with_meta(self, **updates: Any) -> "GridPage":
        """Copy of this page with extra metadata (pages themselves are never mutated)"""
        return self.model_copy(update={"meta": {**self.meta, **updates}})

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
