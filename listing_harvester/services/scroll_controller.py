"""Scroll-triggered loading, driven until the page stops growing.

There is no "content fully loaded" event to wait for, so convergence is
inferred: each round scrolls, waits for the page to settle and then checks
progress. A page that loads slowly enough to look idle for
``stable_rounds`` rounds will be cut off early; ``max_rounds`` bounds pages
that never stop loading.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from listing_harvester.core.config import ScrollConfig
from listing_harvester.core.logger import get_logger

logger = get_logger(__name__)


class ScrollSurface(Protocol):
    async def scroll_burst(self, steps: int, min_step_px: int, viewport_ratio: float) -> None: ...

    async def scroll_height(self) -> int: ...

    async def click_load_more(self) -> int: ...


class StopReason(str, Enum):
    reached = "reached"
    stalled = "stalled"
    exhausted = "exhausted"


@dataclass
class ConvergenceResult:
    reason: StopReason
    rounds: int
    count: Optional[int] = None
    height: int = 0


@dataclass
class ScrollConvergenceController:
    config: ScrollConfig = field(default_factory=ScrollConfig)
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def run(
        self,
        surface: ScrollSurface,
        want_count: Optional[int] = None,
        count_cards: Optional[Callable[[], Awaitable[int]]] = None,
    ) -> ConvergenceResult:
        """
        Scroll until `want_count` cards are present, the height has been flat
        for `stable_rounds` rounds, or `max_rounds` is spent.

        The card count is only consulted when both `want_count` and
        `count_cards` are given; otherwise document height is the only signal.
        """
        cfg = self.config
        use_count = bool(want_count) and count_cards is not None
        last_height = 0
        stable = 0
        count: Optional[int] = None
        height = 0

        for round_no in range(1, cfg.max_rounds + 1):
            if cfg.click_load_more:
                clicks = await surface.click_load_more()
                if clicks > 0:
                    logger.debug("Round %d: clicked %d load-more controls", round_no, clicks)
                    await self._idle(cfg.after_click_delay_ms)

            await surface.scroll_burst(cfg.burst_steps, cfg.min_step_px, cfg.viewport_step_ratio)
            await self._idle(cfg.idle_delay_ms)

            if use_count:
                count = await count_cards()
                if count >= want_count:
                    logger.debug("Round %d: %d cards loaded, target %d reached", round_no, count, want_count)
                    return ConvergenceResult(StopReason.reached, round_no, count, height)

            height = await surface.scroll_height()
            if height <= last_height:
                stable += 1
            else:
                stable = 0
                last_height = height
            logger.debug("Round %d: height=%d count=%s stable=%d", round_no, height, count, stable)

            if stable >= cfg.stable_rounds:
                return ConvergenceResult(StopReason.stalled, round_no, count, height)

        return ConvergenceResult(StopReason.exhausted, cfg.max_rounds, count, height)

    async def _idle(self, delay_ms: int) -> None:
        if delay_ms > 0:
            await self.sleep(delay_ms / 1000)
