# browser.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from playwright_stealth import Stealth

from listing_harvester.core.config import (
    ACCEPT_LANGUAGE,
    BROWSER_ARGS,
    HEADLESS,
    LOAD_MORE_REGEX,
    LOCALE,
    NAVIGATION_TIMEOUT_MS,
    NAVIGATION_WAIT_UNTIL,
    USER_AGENT,
    VIEWPORT,
)
from listing_harvester.models.dom import DomNode, from_payload

# Serializes the composed tree: elements, text nodes and open shadow roots.
SNAPSHOT_JS = """
() => {
  const SKIP = new Set(["SCRIPT", "STYLE", "NOSCRIPT", "TEMPLATE"]);
  const ser = (node) => {
    if (node.nodeType === Node.TEXT_NODE) return node.data;
    const isShadow = node.nodeType === Node.DOCUMENT_FRAGMENT_NODE;
    const out = { t: isShadow ? "#shadow-root" : node.localName, a: {}, c: [] };
    if (node.attributes) for (const attr of node.attributes) out.a[attr.name] = attr.value;
    for (const child of node.childNodes) {
      if (child.nodeType === Node.TEXT_NODE) out.c.push(ser(child));
      else if (child.nodeType === Node.ELEMENT_NODE && !SKIP.has(child.tagName)) out.c.push(ser(child));
    }
    if (node.shadowRoot) out.s = ser(node.shadowRoot);
    return out;
  };
  return ser(document.documentElement);
}
"""

SCROLL_BURST_JS = """
({ steps, minStep, ratio }) => {
  const step = Math.max(minStep, Math.floor(window.innerHeight * ratio));
  for (let i = 0; i < steps; i++) window.scrollBy(0, step);
  window.scrollTo(0, document.body.scrollHeight);
}
"""

SCROLL_HEIGHT_JS = "() => document.body.scrollHeight"

LOAD_MORE_JS = """
(pattern) => {
  const moreRe = new RegExp(pattern);
  const looksLikeMore = (el) => {
    const t = (el.textContent || "").toLowerCase();
    const aria = (el.getAttribute?.("aria-label") || "").toLowerCase();
    return moreRe.test(t) || /\\bmore\\b/.test(t) || /expand/.test(aria);
  };
  const stack = [document];
  let clicked = 0;
  while (stack.length) {
    const n = stack.pop();
    if (!n) continue;
    if (n.nodeType === Node.ELEMENT_NODE) {
      const tag = n.localName;
      const role = n.getAttribute("role");
      if ((tag === "button" || tag === "a" || role === "button") && looksLikeMore(n)) {
        try { n.click(); clicked++; } catch (e) {}
      }
    }
    if (n.shadowRoot) stack.push(n.shadowRoot);
    if (n.children) for (let i = n.children.length - 1; i >= 0; i--) stack.push(n.children[i]);
  }
  return clicked;
}
"""


class BrowserLaunchError(Exception):
    """The browser could not be started at all."""


class NavigationError(Exception):
    def __init__(self, url: str, reason: str):
        super().__init__(f"Navigation to {url} failed: {reason}")
        self.url = url
        self.reason = reason


@dataclass
class BrowserSettings:
    headless: bool = HEADLESS
    args: List[str] = field(default_factory=lambda: list(BROWSER_ARGS))
    user_agent: str = USER_AGENT
    accept_language: str = ACCEPT_LANGUAGE
    locale: str = LOCALE
    viewport: Dict[str, int] = field(default_factory=lambda: dict(VIEWPORT))
    navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS
    wait_until: str = NAVIGATION_WAIT_UNTIL
    stealth: bool = True


class ListingPage:
    """One open tab plus the in-page scripts the harvester needs."""

    def __init__(self, context: Any, page: Any, settings: BrowserSettings) -> None:
        self._context = context
        self._page = page
        self._settings = settings

    @property
    def url(self) -> str:
        return self._page.url

    async def goto(self, url: str) -> None:
        logger.info(f"Navigating to {url}")
        try:
            await self._page.goto(
                url,
                wait_until=self._settings.wait_until,
                timeout=self._settings.navigation_timeout_ms,
            )
        except PlaywrightError as exc:  # includes playwright's TimeoutError
            raise NavigationError(url, str(exc).splitlines()[0] if str(exc) else repr(exc)) from exc

    async def snapshot(self) -> DomNode:
        payload = await self._page.evaluate(SNAPSHOT_JS)
        return from_payload(payload)

    async def scroll_burst(self, steps: int, min_step_px: int, viewport_ratio: float) -> None:
        await self._page.evaluate(
            SCROLL_BURST_JS,
            {"steps": steps, "minStep": min_step_px, "ratio": viewport_ratio},
        )

    async def scroll_height(self) -> int:
        return int(await self._page.evaluate(SCROLL_HEIGHT_JS) or 0)

    async def click_load_more(self) -> int:
        return int(await self._page.evaluate(LOAD_MORE_JS, LOAD_MORE_REGEX) or 0)

    async def close(self) -> None:
        try:
            await self._context.close()
        except PlaywrightError:
            logger.warning("Playwright context failed to close cleanly")


class BrowserSession:
    """Owns the Playwright driver and one Chromium instance for a run."""

    def __init__(self, settings: Optional[BrowserSettings] = None) -> None:
        self.settings = settings or BrowserSettings()
        self._playwright = None
        self._browser = None
        self._stealth = Stealth() if self.settings.stealth else None

    async def start(self) -> "BrowserSession":
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.settings.headless,
                args=self.settings.args,
            )
        except PlaywrightError as exc:
            await self.close()
            raise BrowserLaunchError(f"Could not launch Chromium: {exc}") from exc
        logger.info("Browser session started")
        return self

    async def open_page(self) -> ListingPage:
        if self._browser is None:
            raise BrowserLaunchError("Browser session is not started")
        s = self.settings
        context = await self._browser.new_context(
            user_agent=s.user_agent,
            viewport=s.viewport,
            locale=s.locale,
            extra_http_headers={"Accept-Language": s.accept_language},
        )
        try:
            if self._stealth:
                await self._stealth.apply_stealth_async(context)
            page = await context.new_page()
            if self._stealth:
                await self._stealth.apply_stealth_async(page)
        except BaseException:
            await context.close()
            raise
        return ListingPage(context, page, s)

    async def close(self) -> None:
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError:
                logger.warning("Browser failed to close cleanly")
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def __aenter__(self) -> "BrowserSession":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
