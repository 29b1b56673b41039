"""
In-memory stand-ins for the subset of Playwright's Page/Locator API the scraper uses.

Elements are plain records; a locator is a list of them. Selectors are matched
by exact string (comma-separated selectors match the union of their parts).
"""
from typing import Dict, List, Optional

from scraper import CARD_SELECTORS, METADATA_SELECTOR, TITLE_ANCHOR_SELECTOR


class FakeElement:
    def __init__(self, text: str = "", attrs: Optional[Dict[str, str]] = None, visible: bool = True,
                 children: Optional[Dict[str, List["FakeElement"]]] = None, detached: bool = False):
        self.text = text
        self.attrs = attrs or {}
        self.visible = visible
        self.children = children or {}
        self.detached = detached
        self.waits: List[Optional[int]] = []
        self.clicks = 0


class FakeLocator:
    def __init__(self, elements: List[FakeElement]):
        self.elements = elements

    def _one(self) -> FakeElement:
        if not self.elements:
            raise TimeoutError("Timeout waiting for locator")
        el = self.elements[0]
        if el.detached:
            raise RuntimeError("Element is not attached to the DOM")
        return el

    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self.elements[:1])

    def all(self) -> List["FakeLocator"]:
        return [FakeLocator([el]) for el in self.elements]

    def count(self) -> int:
        return len(self.elements)

    def locator(self, selector: str) -> "FakeLocator":
        found: List[FakeElement] = []
        for el in self.elements:
            found.extend(el.children.get(selector, []))
        return FakeLocator(found)

    def wait_for(self, state: str = "visible", timeout: Optional[int] = None):
        if self.elements:
            self.elements[0].waits.append(timeout)
        el = self._one()
        if state == "visible" and not el.visible:
            raise TimeoutError(f"Timeout {timeout}ms waiting for visibility")

    def is_visible(self, timeout: Optional[int] = None) -> bool:
        return bool(self.elements) and self.elements[0].visible

    def text_content(self, timeout: Optional[int] = None) -> Optional[str]:
        return self._one().text

    def inner_text(self, timeout: Optional[int] = None) -> str:
        return self._one().text

    def get_attribute(self, name: str, timeout: Optional[int] = None) -> Optional[str]:
        return self._one().attrs.get(name)

    def all_text_contents(self) -> List[str]:
        return [el.text for el in self.elements]

    def click(self, timeout: Optional[int] = None):
        self._one().clicks += 1


class FakeMouse:
    def __init__(self, page: "FakePage"):
        self.page = page

    def wheel(self, delta_x: int, delta_y: int):
        self.page.scrolls += 1
        if self.page.loaded is not None and self.page.per_scroll:
            self.page.loaded += self.page.per_scroll


class FakePage:
    """
    `elements` maps selector -> elements for the current document.
    `routes` maps an exact URL to the elements shown after goto(url).
    `fail_on` URL fragments make goto raise. `loaded`/`per_scroll` cap how
    many cards exist until the page is scrolled.
    """

    def __init__(self, elements=None, routes=None, fail_on=(), loaded: Optional[int] = None,
                 per_scroll: int = 0):
        self.elements: Dict[str, List[FakeElement]] = dict(elements or {})
        self.routes = routes or {}
        self.fail_on = tuple(fail_on)
        self.loaded = loaded
        self.per_scroll = per_scroll
        self.visited: List[str] = []
        self.waits: List[int] = []
        self.scrolls = 0
        self.screenshots: List[str] = []
        self.mouse = FakeMouse(self)

    def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[int] = None):
        self.visited.append(url)
        for frag in self.fail_on:
            if frag in url:
                raise RuntimeError(f"net::ERR_CONNECTION_RESET at {url}")
        if url in self.routes:
            self.elements = dict(self.routes[url])

    def wait_for_timeout(self, ms: int):
        self.waits.append(ms)

    def locator(self, selector: str) -> FakeLocator:
        found: List[FakeElement] = []
        for part in [p.strip() for p in selector.split(",")]:
            els = self.elements.get(part, [])
            if part in CARD_SELECTORS and self.loaded is not None:
                els = els[:self.loaded]
            found.extend(els)
        return FakeLocator(found)

    def content(self) -> str:
        return "<html><body></body></html>"

    def screenshot(self, path: Optional[str] = None, full_page: bool = False) -> bytes:
        data = b"\x89PNG"
        if path:
            with open(path, "wb") as f:
                f.write(data)
            self.screenshots.append(path)
        return data


def make_card(title: Optional[str] = None, href: Optional[str] = "/watch?v=abc", aria: Optional[str] = None,
              text: str = "", meta=("1.2M views", "3 days ago"), detached: bool = False) -> FakeElement:
    attrs = {}
    if title is not None:
        attrs["title"] = title
    if aria is not None:
        attrs["aria-label"] = aria
    if href is not None:
        attrs["href"] = href
    anchor = FakeElement(text=text, attrs=attrs, detached=detached)
    spans = [FakeElement(text=m) for m in meta]
    return FakeElement(children={TITLE_ANCHOR_SELECTOR: [anchor], METADATA_SELECTOR: spans})


def make_cards(n: int, prefix: str = "Video") -> List[FakeElement]:
    return [make_card(title=f"{prefix} {i}", href=f"/watch?v=id{i:09d}") for i in range(n)]
