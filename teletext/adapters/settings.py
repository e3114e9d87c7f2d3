# FILE: teletext/adapters/settings.py
"""
Settings pages (7xx): index, display themes, keyboard reference

Themes are applied by the client; the page carries their palettes in meta.
"""
import logging

from teletext.adapters.base import INDEX_LINK, ContentAdapter, menu_rows
from teletext.errors import PageNotFoundError
from teletext.models.page import Link
from teletext.models.requests import PageRequest, PageResult
from teletext.page_ids import parse_page_id

logger = logging.getLogger(__name__)

SETTINGS_LINK = Link(label="SETTINGS", target_page="700", color="green")

THEMES = {
    "ceefax": {
        "name": "Ceefax",
        "description": "Yellow on blue, classic BBC",
        "colors": {"background": "#0000AA", "text": "#FFFF00", "red": "#FF0000",
                   "green": "#00FF00", "yellow": "#FFFF00", "blue": "#0000FF"},
    },
    "orf": {
        "name": "ORF",
        "description": "Green on black, Austrian style",
        "colors": {"background": "#000000", "text": "#00FF00", "red": "#FF3333",
                   "green": "#33FF33", "yellow": "#FFFF33", "blue": "#3333FF"},
    },
    "highcontrast": {
        "name": "High Contrast",
        "description": "White on black, most readable",
        "colors": {"background": "#000000", "text": "#FFFFFF", "red": "#FF0000",
                   "green": "#00FF00", "yellow": "#FFFF00", "blue": "#0088FF"},
    },
    "haunting": {
        "name": "Haunting Mode",
        "description": "Dim green with glitches",
        "colors": {"background": "#000000", "text": "#00FF00", "red": "#880000",
                   "green": "#008800", "yellow": "#888800", "blue": "#000088"},
    },
}


class SettingsAdapter(ContentAdapter):
    name = "settings"
    cache_duration = 86400

    async def get_page(self, request: PageRequest) -> PageResult:
        address = parse_page_id(request.page_id)
        if address.sub_index is not None:
            raise PageNotFoundError(request.page_id)

        if address.number == 700:
            return self.single(self._index_page())
        if address.number == 701:
            return self.single(self._themes_page())
        if address.number == 702:
            return self.single(self._keyboard_page())
        return self.single(self.placeholder_page(request.page_id, links=[INDEX_LINK, SETTINGS_LINK]))

    def _index_page(self):
        body = [
            "",
            "SETTINGS & PREFERENCES",
            "",
            "701 Display themes",
            "702 Keyboard shortcuts",
            "",
            "Preferences are stored in your",
            "browser, not on the server.",
        ]
        return self.make_page("700", "Settings", body, links=[
            INDEX_LINK,
            Link(label="THEMES", target_page="701", color="green"),
            Link(label="KEYS", target_page="702", color="yellow"),
        ])

    def _themes_page(self):
        body = ["", "Press a number key to select theme:", ""]
        for row, theme in zip(menu_rows([t["name"].upper() for t in THEMES.values()]), THEMES.values()):
            body += [row, f"   {theme['description']}", ""]
        return self.make_page("701", "Themes", body, links=[INDEX_LINK, SETTINGS_LINK], meta={
            "inputMode": "single",
            "inputOptions": len(THEMES),
            "themes": THEMES,
        })

    def _keyboard_page(self):
        body = [
            "",
            "NAVIGATION:",
            "0-9        Enter page digits",
            "Enter      Go to entered page",
            "Backspace  Delete last digit",
            "Up/Down    Channel up/down",
            "Left       Back to previous page",
            "",
            "COLORED BUTTONS:",
            "R          Red button",
            "G          Green button",
            "Y          Yellow button",
            "B          Blue button",
        ]
        return self.make_page("702", "Keyboard Shortcuts", body, links=[
            INDEX_LINK, SETTINGS_LINK, Link(label="HELP", target_page="999", color="yellow"),
        ])
