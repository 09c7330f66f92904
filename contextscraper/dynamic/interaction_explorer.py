"""Interaction loop for beast mode.

For every candidate the content model proposed:
    1. Locate all matches of its selector on the live page
    2. For each visible, enabled match:
        a. Arm a fresh change tracker
        b. Perform the interaction
        c. Drain the observed changes and keep the best one
        d. Close whatever the interaction opened
    3. Stop early when the interaction deadline is reached

Ranking of observed changes:
    elementAdded (5) > newlyVisibleElement (3) > attributeChanged (2),
    ties broken by the larger text.
"""

import asyncio
import time
from typing import List, Optional, Sequence

from ..core.models import CandidateElement, ObservedChange, RevealedContentItem
from .change_tracker import ChangeTracker
from .interaction_executor import InteractionExecutor
from .overlays import dismiss_overlays, find_overlays, is_scrolling_blocked, release_overlays


def rank_changes(changes: Sequence[ObservedChange]) -> Optional[ObservedChange]:
    """The most significant change, or None."""
    if not changes:
        return None
    return max(changes, key=lambda c: (c.priority, c.text_length))


class InteractionExplorer:
    """
    Drives the interaction loop over discovered candidates.

    Attributes:
        max_interactions: Upper bound on interactions per page
        deadline: Seconds the whole loop may take
        revealed: Items collected so far (kept when the deadline hits)
    """

    def __init__(self, page, config, tracker: ChangeTracker = None, executor: InteractionExecutor = None):
        self.page = page
        self.config = config

        # Exploration limits (safety)
        self.max_interactions = config.max_interactions
        self.deadline = config.interaction_deadline  # seconds

        self.tracker = tracker or ChangeTracker()
        self.executor = executor or InteractionExecutor(settle_delay=config.settle_delay)

        self.revealed: List[RevealedContentItem] = []
        self.interactions = 0
        self.skipped_selectors: List[str] = []

    def _unique(self, candidates: Sequence[CandidateElement]) -> List[CandidateElement]:
        seen = set()
        unique = []
        for candidate in candidates:
            key = (candidate.selector, candidate.interaction_type)
            if key in seen:
                continue
            seen.add(key)
            unique.append(candidate)
        return unique

    async def explore(self, candidates: Sequence[CandidateElement]) -> List[RevealedContentItem]:
        """
        Interact with every candidate and collect what each one revealed.

        Args:
            candidates: Elements proposed by element discovery

        Returns:
            One RevealedContentItem per interaction that revealed something
        """
        candidates = self._unique(candidates)
        started = time.monotonic()

        print("  [EXPLORE] Starting interaction loop")
        print(f"    Candidates: {len(candidates)}")
        print(f"    Max interactions: {self.max_interactions}, deadline: {self.deadline}s")

        for i, candidate in enumerate(candidates, 1):
            if self._out_of_budget(started):
                break

            print(f"    [{i}/{len(candidates)}] {candidate.interaction_type.value}: {candidate.selector}")
            try:
                await self._explore_candidate(candidate, started)
            except Exception as e:
                print(f"      ✗ Candidate failed: {e}")
                continue

        await self.tracker.detach()

        print(f"  [EXPLORE] Complete: {len(self.revealed)} item(s) from {self.interactions} interaction(s)")
        return self.revealed

    def _out_of_budget(self, started: float) -> bool:
        if time.monotonic() - started >= self.deadline:
            print(f"    ⚠ Interaction deadline ({self.deadline}s) reached, keeping {len(self.revealed)} item(s)")
            return True
        if self.interactions >= self.max_interactions:
            print(f"    ⚠ Interaction limit ({self.max_interactions}) reached")
            return True
        return False

    async def _explore_candidate(self, candidate: CandidateElement, started: float):
        locator = self.page.locator(candidate.selector)
        try:
            count = await locator.count()
        except Exception as e:
            print(f"      ⚠ Invalid selector, skipping: {e}")
            self.skipped_selectors.append(candidate.selector)
            return

        if count == 0:
            print("      ⚠ No elements match this selector, skipping")
            self.skipped_selectors.append(candidate.selector)
            return

        for index in range(count):
            if self._out_of_budget(started):
                return

            target = locator.nth(index)
            try:
                if not await target.is_visible() or not await target.is_enabled():
                    continue
            except Exception:
                continue

            item = await self._interact(candidate, index, target)
            if item:
                self.revealed.append(item)
                print(f"      ✓ Revealed {item.change_type.value} ({item.metadata['total_changes']} change(s))")

            await self._clear_overlays()

    async def _interact(self, candidate: CandidateElement, index: int, target) -> Optional[RevealedContentItem]:
        """Single tracked interaction."""
        handle = await self.tracker.attach(self.page)
        try:
            self.interactions += 1
            if not await self.executor.perform(target, candidate.interaction_type):
                return None
            changes = await handle.drain_changes()
        finally:
            await handle.detach()

        best = rank_changes(changes)
        if best is None:
            print("      → No visible change")
            return None

        return RevealedContentItem(
            selector=candidate.selector,
            element_index=index,
            interaction_type=candidate.interaction_type,
            change_type=best.change_type,
            revealed_html=best.outer_html,
            position=best.locator,
            metadata={
                'total_changes': len(changes),
                'all_change_types': sorted({c.change_type.value for c in changes}),
                'timestamp': best.timestamp,
                'text_length': best.text_length,
            }
        )

    async def _clear_overlays(self):
        """Undo whatever the last interaction opened before moving on."""
        try:
            if not await is_scrolling_blocked(self.page):
                await release_overlays(self.page)
                await asyncio.sleep(0.1)
                return

            overlays = await find_overlays(self.page)
            if overlays:
                print(f"      → Scrolling blocked, dismissing {len(overlays)} overlay(s)")
                await dismiss_overlays(self.page, overlays)
        except Exception as e:
            print(f"      ⚠ Overlay cleanup failed: {e}")
