"""Title / description extraction from an HTML page.

Priority: OpenGraph, then Twitter cards, then the plain ``<title>`` and
``<meta name="description">``.
"""

from __future__ import annotations

from dataclasses import dataclass
from html.parser import HTMLParser


@dataclass
class PageMeta:
    title: str | None = None
    description: str | None = None


class _MetaParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.meta: dict[str, str] = {}
        self._title_parts: list[str] = []
        self._in_title = False
        self._seen_title = False

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "meta":
            attr_map = {k.lower(): (v or "") for k, v in attrs}
            key = (attr_map.get("property") or attr_map.get("name") or "").lower()
            content = attr_map.get("content", "").strip()
            # First occurrence wins
            if key and content and key not in self.meta:
                self.meta[key] = content
        elif tag == "title" and not self._seen_title:
            self._in_title = True

    def handle_endtag(self, tag: str) -> None:
        if tag == "title" and self._in_title:
            self._in_title = False
            self._seen_title = True

    def handle_data(self, data: str) -> None:
        if self._in_title:
            self._title_parts.append(data)

    @property
    def title(self) -> str:
        return " ".join("".join(self._title_parts).split())


def extract_page_meta(html: str) -> PageMeta:
    parser = _MetaParser()
    parser.feed(html)
    parser.close()

    meta = parser.meta
    title = meta.get("og:title") or meta.get("twitter:title") or parser.title or None
    description = (
        meta.get("og:description")
        or meta.get("twitter:description")
        or meta.get("description")
        or None
    )
    return PageMeta(title=title, description=description)
