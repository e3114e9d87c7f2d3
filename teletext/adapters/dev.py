# FILE: teletext/adapters/dev.py
"""
Developer tools (8xx)

801 inspects another page. The page service renders the ``target`` page
first and hands it over as ``request.current_page``; the raw JSON is then
paginated on 801-1, 801-2, ...
"""
import json
import logging
from typing import Any, Callable, Dict, Type

from teletext.adapters.base import INDEX_LINK, ContentAdapter
from teletext.errors import InvalidParametersError, PageNotFoundError
from teletext.models.page import Link
from teletext.models.requests import DebugParams, NoParams, PageParams, PageRequest, PageResult
from teletext.page_ids import parse_page_id
from teletext.services.grid import ellipsize
from teletext.services.paginator import paginate

logger = logging.getLogger(__name__)

DEV_LINK = Link(label="DEV", target_page="800", color="green")
RAW_VIEW_PAGE = 801

StatusProvider = Callable[[], Dict[str, Any]]


class DevAdapter(ContentAdapter):
    """Raw page inspector and service status"""

    name = "dev"

    def __init__(self, status_provider: StatusProvider):
        self.status_provider = status_provider

    def params_model_for(self, page_id: str) -> Type[PageParams]:
        if parse_page_id(page_id).number == RAW_VIEW_PAGE:
            return DebugParams
        return NoParams

    async def get_page(self, request: PageRequest) -> PageResult:
        address = parse_page_id(request.page_id)
        if address.number == RAW_VIEW_PAGE:
            return self._raw_view(request)
        if address.sub_index is not None:
            raise PageNotFoundError(request.page_id)
        if address.number == 800:
            return self.single(self._index_page())
        if address.number == 802:
            return self.single(self._status_page())
        return self.single(self.placeholder_page(request.page_id, links=[INDEX_LINK, DEV_LINK]))

    def _index_page(self):
        body = [
            "",
            "DEVELOPER TOOLS",
            "",
            "801 Raw page JSON",
            "    add ?target=<page> to inspect",
            "    any other page",
            "802 Service status",
        ]
        return self.make_page("800", "Developer Tools", body, links=[
            INDEX_LINK,
            Link(label="RAW", target_page="801", color="green"),
            Link(label="STATUS", target_page="802", color="yellow"),
        ])

    def _raw_view(self, request: PageRequest) -> PageResult:
        target = request.current_page
        if target is None:
            raise InvalidParametersError("no page to inspect")

        raw = json.dumps(target.to_json(), indent=1, ensure_ascii=False)
        pages = paginate(
            raw, "801-1",
            title=f"Raw JSON {target.id}",
            links=[INDEX_LINK, DEV_LINK],
            meta={"source": self.name, "target": target.id},
        )
        if request.page_id != "801":
            return self.select_page(pages, request.page_id)

        body = [
            "",
            f"TARGET   P{target.id}",
            ellipsize(f"TITLE    {target.title}", 40),
            f"LINKS    {len(target.links)}",
            f"SOURCE   {target.meta.get('source', 'unknown')}",
            ellipsize(f"META     {', '.join(sorted(target.meta))}", 40),
            "",
            f"Raw JSON spans {len(pages)} page(s)",
            "starting at 801-1.",
        ]
        summary = self.make_page("801", "Raw Page View", body, meta={"target": target.id}, links=[
            INDEX_LINK, DEV_LINK,
            Link(label="JSON", target_page="801-1", color="yellow"),
            Link(label="TARGET", target_page=target.id, color="blue"),
        ])
        return PageResult(pages=[summary, *pages])

    def _status_page(self):
        status = self.status_provider()
        body = [""]
        for key, value in status.items():
            if isinstance(value, dict):
                body.append(f"{key.upper()}:")
                for sub_key, sub_value in value.items():
                    body.append(ellipsize(f"  {sub_key:<22} {sub_value}", 40))
            else:
                body.append(ellipsize(f"{key:<24} {value}", 40))
        return self.make_page("802", "Service Status", body, links=[INDEX_LINK, DEV_LINK])
