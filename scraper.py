"""
Channel page extraction over a Playwright page.

- Identity resolution from the channel URL (/@handle, /channel/<id>, /c/<name>).
- Selector fallback resolution: ranked candidates, first visible non-empty text wins.
- Resilient navigation with consent handling and unavailable-page detection.
- Lazy-load expansion by scrolling until the card count stops growing.
- Per-card extraction (title, absolute URL, two positional metadata strings).
- Listing collection with a per-item failure boundary; the popular listing is best-effort.
"""
import logging
import os
import re
from typing import Any, Callable, Iterable, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

from playwright.sync_api import Page
from tenacity import retry, wait_exponential, retry_if_exception_type

import config
from errors import (
    ElementResolutionMiss,
    InvalidSourceUrl,
    ItemExtractionFailure,
    SecondaryListingUnavailable,
    SessionNotInitialized,
)
from models import UNKNOWN, ChannelIdentity, ListKind, MediaItem, utc_now_iso

CARD_SELECTORS = ["ytd-rich-item-renderer", "ytd-grid-video-renderer"]
CARD_COUNT_SELECTOR = ", ".join(CARD_SELECTORS)
TITLE_ANCHOR_SELECTOR = "#video-title, a#video-title-link"
METADATA_SELECTOR = "#metadata-line span, .ytd-video-meta-block span"

CHANNEL_NAME_SELECTORS = [
    "yt-page-header-renderer h1",
    "#page-header h1",
    "ytd-c4-tabbed-header-renderer ytd-channel-name #text",
    "#channel-header ytd-channel-name #text",
    "ytd-channel-name#channel-name yt-formatted-string",
]
SUBSCRIBER_SELECTORS = [
    "#subscriber-count",
    "yt-page-header-renderer yt-content-metadata-view-model span:has-text('subscriber')",
    "#page-header yt-content-metadata-view-model span:has-text('subscriber')",
]

CONSENT_SELECTORS = [
    'button[aria-label*="Accept"]', 'button:has-text("Accept all")', 'button:has-text("I agree")',
    'button:has-text("모두 수락")', 'button[aria-label*="Agree"]', 'button#introAgreeButton',
]

SCROLL_STEP = 1000
STABLE_ROUNDS = 2
SCROLL_ROUNDS = {ListKind.PRIMARY: 5, ListKind.SECONDARY: 3}
SETTLE_AFTER_NAV_MS = {ListKind.PRIMARY: 5000, ListKind.SECONDARY: 3000}

_IDENTITY_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"^/@([^/?#]+)"), "@{}"),
    (re.compile(r"^/channel/([^/?#]+)"), "{}"),
    (re.compile(r"^/c/([^/?#]+)"), "{}"),
]


def require_page(page: Optional[Page]) -> Page:
    if page is None:
        raise SessionNotInitialized()
    return page


# -----------------------
# Identity
# -----------------------
def _match_channel(url: str):
    """Parsed URL plus the matched channel path prefix and its id template; InvalidSourceUrl otherwise."""
    raw = (url or "").strip()
    if not raw:
        raise InvalidSourceUrl(url)
    if "://" not in raw:
        raw = "https://" + raw
    parsed = urlparse(raw)
    path = parsed.path or ""
    for pattern, template in _IDENTITY_PATTERNS:
        m = pattern.match(path)
        if not m:
            continue
        segment = m.group(1)
        # the id becomes a directory name under the catalog root
        if segment in (".", "..") or any(sep and sep in segment for sep in (os.sep, os.altsep)):
            break
        return parsed, m, template
    raise InvalidSourceUrl(url)


def resolve_identity(url: str) -> str:
    """
    Map a channel URL to its catalog id:
      .../@handle        -> "@handle"
      .../channel/UCxyz  -> "UCxyz"
      .../c/CustomName   -> "CustomName"
    Query strings and sub-paths after the channel segment are ignored.
    Anything else raises InvalidSourceUrl.
    """
    _, m, template = _match_channel(url)
    return template.format(m.group(1))


def listing_url(channel_url: str, kind: ListKind) -> str:
    parsed, m, _ = _match_channel(channel_url)
    base = f"{parsed.scheme}://{parsed.netloc}{m.group(0)}"
    if kind is ListKind.SECONDARY:
        return base + "/videos?view=0&sort=p&flow=grid"
    return base + "/videos"


# -----------------------
# Selector fallback
# -----------------------
def first_non_empty(strategies: Iterable[Callable[[], Optional[str]]], fallback: str = "",
                    tolerate: Tuple[type, ...] = (Exception,)) -> str:
    """
    Run strategies in order and return the first trimmed, non-empty result.

    Exceptions listed in `tolerate` count as a miss for that strategy only;
    anything else propagates. Returns `fallback` when every strategy misses.
    """
    for strategy in strategies:
        try:
            value = strategy()
        except tolerate as e:
            logging.debug("Strategy miss: %s", e)
            continue
        if value and value.strip():
            return value.strip()
    return fallback


def _visible_text(scope: Any, selector: str, timeout_ms: int) -> Callable[[], Optional[str]]:
    def read() -> Optional[str]:
        el = scope.locator(selector).first
        try:
            el.wait_for(state="visible", timeout=timeout_ms)
        except Exception as e:
            raise ElementResolutionMiss(selector, type(e).__name__) from e
        return el.text_content()
    return read


def resolve_text(scope: Any, selectors: List[str], fallback: str = "",
                 timeout_ms: int = config.RESOLVE_TIMEOUT_MS) -> str:
    """First visible, non-empty text among `selectors` under `scope` (page or locator)."""
    return first_non_empty((_visible_text(scope, sel, timeout_ms) for sel in selectors), fallback)


# -----------------------
# Navigation
# -----------------------
def handle_consent(page: Page) -> bool:
    for sel in CONSENT_SELECTORS:
        try:
            el = page.locator(sel).first
            if el.is_visible(timeout=1200):
                el.click(timeout=3000)
                page.wait_for_timeout(2000)
                logging.info("Clicked consent selector: %s", sel)
                return True
        except Exception:
            continue
    return False


def is_page_unavailable(page: Page) -> bool:
    """Detect the YouTube 'This page isn't available' screen or similar."""
    try:
        if page.locator("ytd-page-not-found-renderer").count() > 0:
            return True
        body_text = page.locator("body").inner_text(timeout=2000) or ""
        lowered = body_text.lower()
        return "this page isn't available" in lowered or "channel is not available" in lowered
    except Exception:
        return False


def _nav_attempts_exhausted(retry_state) -> bool:
    return retry_state.attempt_number >= config.NAV_ATTEMPTS


@retry(wait=wait_exponential(multiplier=1, min=2, max=8), stop=_nav_attempts_exhausted,
       retry=retry_if_exception_type(Exception), reraise=True)
def goto_and_settle(page: Page, url: str, settle_ms: int, timeout_ms: int = config.NAV_TIMEOUT_MS):
    """Navigate, wait for DOMContentLoaded plus a settle delay, then dismiss any consent dialog."""
    logging.info("Navigating to: %s", url)
    page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
    page.wait_for_timeout(settle_ms)
    try:
        handle_consent(page)
    except Exception:
        logging.debug("Consent handling failed")


def dump_page(page: Page, name: str, out_dir: str = config.DEBUG_DIR):
    """Save debug_<name>.png and debug_<name>.html. Never raises."""
    png_path = os.path.join(out_dir, f"debug_{name}.png")
    html_path = os.path.join(out_dir, f"debug_{name}.html")
    try:
        os.makedirs(out_dir, exist_ok=True)
        page.screenshot(path=png_path, full_page=False)
        logging.info("Screenshot saved: %s", png_path)
        with open(html_path, "w", encoding="utf-8") as f:
            f.write(page.content() or "")
        logging.info("HTML saved: %s", html_path)
    except Exception as e:
        logging.warning("Debug dump failed for %s: %s", name, e)


# -----------------------
# Lazy-load
# -----------------------
def count_cards(page: Page, selector: str = CARD_COUNT_SELECTOR) -> int:
    try:
        return page.locator(selector).count()
    except Exception as e:
        logging.debug("Card count failed: %s", e)
        return 0


def expand(page: Page, rounds: int, settle_delay_ms: int = config.SETTLE_DELAY_MS,
           card_selector: str = CARD_COUNT_SELECTOR, scroll_step: int = SCROLL_STEP) -> int:
    """
    Scroll to materialise lazy-loaded cards.

    Each round scrolls once, waits `settle_delay_ms` and recounts. Stops after
    STABLE_ROUNDS consecutive rounds with no growth, or after `rounds`.
    Returns the last card count.
    """
    count = count_cards(page, card_selector)
    idle = 0
    for i in range(rounds):
        page.mouse.wheel(0, scroll_step)
        page.wait_for_timeout(settle_delay_ms)
        current = count_cards(page, card_selector)
        idle = idle + 1 if current <= count else 0
        count = max(count, current)
        if idle >= STABLE_ROUNDS:
            logging.debug("Card count settled at %d after %d rounds", count, i + 1)
            break
    return count


# -----------------------
# Card extraction
# -----------------------
def absolute_url(href: str, origin: str = config.SITE_ORIGIN) -> str:
    if urlparse(href).scheme:
        return href
    return urljoin(origin + "/", href)


def extract_item(card, timeout_ms: int = config.ATTRIBUTE_TIMEOUT_MS) -> Optional[MediaItem]:
    """
    Build a MediaItem from one rendered card, or None when it has no title or no link.

    Title prefers the `title` attribute, then `aria-label`, then the anchor text;
    rendered text is often truncated. Metadata is positional: the first span is
    taken as the view count and the second as the publish recency.
    Raises ItemExtractionFailure on any element error.
    """
    try:
        anchor = card.locator(TITLE_ANCHOR_SELECTOR).first
        title = first_non_empty([
            lambda: anchor.get_attribute("title", timeout=timeout_ms),
            lambda: anchor.get_attribute("aria-label", timeout=timeout_ms),
            lambda: anchor.text_content(timeout=timeout_ms),
        ], tolerate=())
        href = (anchor.get_attribute("href", timeout=timeout_ms) or "").strip()
        if not title or not href:
            return None
        meta = [t.strip() for t in card.locator(METADATA_SELECTOR).all_text_contents()]
    except Exception as e:
        raise ItemExtractionFailure(f"{type(e).__name__}: {e}") from e
    return MediaItem(
        title=title,
        url=absolute_url(href),
        engagement_metric=(meta[0] if len(meta) > 0 and meta[0] else UNKNOWN),
        recency_metric=(meta[1] if len(meta) > 1 and meta[1] else UNKNOWN),
    )


def query_cards(page: Page) -> List[Any]:
    for sel in CARD_SELECTORS:
        cards = page.locator(sel).all()
        if cards:
            return cards
    return []


# -----------------------
# Listing collection
# -----------------------
def _collect(page: Page, item_cap: int, kind: ListKind, source_url: Optional[str], debug: bool) -> List[MediaItem]:
    if source_url:
        target = listing_url(source_url, kind)
        goto_and_settle(page, target, SETTLE_AFTER_NAV_MS[kind])
        if debug:
            dump_page(page, f"{kind.value}_videos_page")
        if is_page_unavailable(page):
            if kind is ListKind.SECONDARY:
                raise SecondaryListingUnavailable(target)
            logging.warning("Listing reports unavailable: %s", target)

    expand(page, SCROLL_ROUNDS[kind])
    cards = query_cards(page)
    logging.info("  Found %d %s cards", len(cards), kind.value)

    items: List[MediaItem] = []
    lost = 0
    for idx, card in enumerate(cards[:max(item_cap, 0)], 1):
        try:
            item = extract_item(card)
        except ItemExtractionFailure as e:
            logging.warning("  Card %d skipped: %s", idx, e)
            lost += 1
            continue
        if item is None:
            logging.debug("  Card %d has no title or link; dropped", idx)
            lost += 1
            continue
        items.append(item)
        logging.info("  ✓ %d. %s", idx, item.title[:50])
    if lost:
        logging.info("  %d of %d cards dropped", lost, lost + len(items))
    return items


def collect(page: Page, item_cap: int, kind: ListKind, source_url: Optional[str] = None,
            debug: bool = False) -> List[MediaItem]:
    """
    Collect up to `item_cap` items from a channel listing, in page order.

    With `source_url` the listing page for `kind` is opened first; otherwise the
    current page is used. Failures of the SECONDARY (popular) listing degrade to [].
    """
    require_page(page)
    logging.info("Collecting up to %d %s videos", item_cap, kind.value)
    if kind is ListKind.PRIMARY:
        items = _collect(page, item_cap, kind, source_url, debug)
    else:
        try:
            items = _collect(page, item_cap, kind, source_url, debug)
        except Exception as e:
            logging.warning("Popular listing unavailable, skipping: %s", e)
            return []
    logging.info("✅ Collected %d %s videos", len(items), kind.value)
    return items


# -----------------------
# Channel flow
# -----------------------
def scrape_identity(page: Page, source_url: str, timeout_ms: int = config.RESOLVE_TIMEOUT_MS) -> ChannelIdentity:
    """Identity for `source_url`, enriched with the header name/subscriber line of the current page."""
    channel_id = resolve_identity(source_url)
    require_page(page)
    name = resolve_text(page, CHANNEL_NAME_SELECTORS, UNKNOWN, timeout_ms)
    subscribers = resolve_text(page, SUBSCRIBER_SELECTORS, UNKNOWN, timeout_ms)
    logging.info("✅ Channel: %s (%s)", channel_id, name)
    return ChannelIdentity(id=channel_id, source_url=source_url, scraped_at=utc_now_iso(),
                           name=name, subscribers=subscribers)


def scrape_channel(page: Page, source_url: str, max_recent: int = config.MAX_RECENT,
                   max_popular: int = config.MAX_POPULAR, debug: bool = False):
    """
    Open the channel's videos tab, read its identity and recent videos, then the
    popular listing. Returns (identity, recent, popular).
    """
    resolve_identity(source_url)
    require_page(page)
    goto_and_settle(page, listing_url(source_url, ListKind.PRIMARY), SETTLE_AFTER_NAV_MS[ListKind.PRIMARY])
    if debug:
        dump_page(page, "videos_page_initial")
    if is_page_unavailable(page):
        logging.warning("Channel videos page reports unavailable: %s", source_url)
    identity = scrape_identity(page, source_url)
    recent = collect(page, max_recent, ListKind.PRIMARY, debug=debug)
    popular = collect(page, max_popular, ListKind.SECONDARY, source_url=source_url, debug=debug)
    return identity, recent, popular
