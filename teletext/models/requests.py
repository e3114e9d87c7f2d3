# FILE: teletext/models/requests.py
"""
Request and parameter models

Each page family accepts a closed set of parameters; unknown keys are
rejected instead of being silently ignored.
"""
from typing import Any, Dict, List, Literal, Optional, Type
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from teletext.errors import InvalidParametersError
from teletext.models.page import GridPage


class PageParams(BaseModel):
    """Base for per-page query parameters (no parameters accepted)"""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True
    )


class NoParams(PageParams):
    pass


class ContextParams(PageParams):
    """Pages that continue an AI conversation"""
    context_id: Optional[str] = None


class ChatParams(ContextParams):
    question: Optional[str] = Field(default=None, max_length=500)


class QAParams(ContextParams):
    topic: str = Field(default="5", pattern=r"^[1-5]$")
    region: str = Field(default="5", pattern=r"^[1-5]$")
    question_type: str = Field(default="5", pattern=r"^[1-5]$")


class StoryParams(ContextParams):
    theme: str = Field(default="6", pattern=r"^[1-6]$")
    length: str = Field(default="1", pattern=r"^[1-3]$")


class SessionParams(PageParams):
    """Games pages keyed by a quiz or story session"""
    session_id: Optional[str] = None


class CityParams(PageParams):
    city: Optional[str] = Field(default=None, max_length=60)


class DebugParams(PageParams):
    target: str = "100"


class PageRequest(BaseModel):
    """
    Everything an adapter needs to render one page.

    ``current_page`` carries a page rendered earlier in the same request
    (the dev raw view inspects it) instead of any process-wide state.
    ``context_id`` is the conversation or session a text input belongs to.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    page_id: str
    params: PageParams = Field(default_factory=NoParams)
    text_input: Optional[str] = None
    context_id: Optional[str] = None
    current_page: Optional[GridPage] = None


class PageResult(BaseModel):
    """Pages produced for one request; the first is the one requested"""
    pages: List[GridPage]
    context_id: Optional[str] = None

    @property
    def page(self) -> GridPage:
        return self.pages[0]

    @property
    def additional_pages(self) -> List[GridPage]:
        return self.pages[1:]


class TextInputRequest(BaseModel):
    """POST /page/{id} body"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    text_input: str = Field(..., min_length=1, max_length=500)
    context_id: Optional[str] = None


class AIRequest(BaseModel):
    """POST /ai body"""
    model_config = ConfigDict(extra="forbid")

    mode: Literal["chat", "qa", "spooky_story"]
    parameters: Dict[str, Any] = Field(default_factory=dict)


AI_MODE_PARAMS: Dict[str, Type[PageParams]] = {
    "chat": ChatParams,
    "qa": QAParams,
    "spooky_story": StoryParams,
}


def parse_params(model: Type[PageParams], data: Dict[str, Any]) -> PageParams:
    """Validate a parameter bag, reporting the first problem as InvalidParametersError"""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ())) or "parameters"
        raise InvalidParametersError(f"{field}: {error['msg']}") from e
