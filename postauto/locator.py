# postauto/locator.py
"""
@file locator.py
@brief Resolves logical targets to visible elements by ordered strategies.

Strategies are tried in declared order and the first strategy that yields a
visible, matching element wins; within that strategy the first matching
element in document order is returned. Not finding anything is a normal
result (None), never an exception.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Awaitable, Callable, List, Optional, Tuple

from .actionlogger import ACTION_LOGGER
from .element import ElementMeta, ResolvedElement, TargetDescriptor, TextFilter
from .exceptions import ElementNotFoundError, LocatorAttempt
from .interfaces import IPage
from .waits import poll_until


class ElementLocator:
    """
    Element Locator bound to the current page.

    Only reads the DOM. ``history`` keeps the metadata of every successful
    resolution of the run, never the elements themselves.
    """

    def __init__(self, page: IPage):
        self.page = page
        self.history: List[ElementMeta] = []

    async def locate(
        self,
        descriptor: TargetDescriptor,
        *,
        text_filter: Optional[TextFilter] = None,
        require_enabled: bool = False,
        attempts: Optional[List[LocatorAttempt]] = None,
    ) -> Optional[ResolvedElement]:
        """
        One pass over the descriptor's strategies against the current page.

        @param descriptor Logical target
        @param text_filter Optional case-insensitive text/label predicate
        @param require_enabled Also skip disabled elements
        @param attempts Optional list receiving one LocatorAttempt per missed strategy
        @return ResolvedElement or None
        """
        for index, strategy in enumerate(descriptor.strategies):
            try:
                candidates = await strategy.candidates(self.page)
            except Exception as e:
                if attempts is not None:
                    attempts.append(LocatorAttempt(
                        kind=strategy.kind,
                        locator=strategy.describe(),
                        error=f"{type(e).__name__}: {e}",
                    ))
                continue

            for element in candidates:
                try:
                    if not await element.is_visible():
                        continue
                    if text_filter is not None and not text_filter.matches(await element.label_texts()):
                        continue
                    if require_enabled and not await element.is_enabled():
                        continue
                except Exception:
                    # Detached between query and inspection.
                    continue

                meta = ElementMeta(
                    name=descriptor.name,
                    strategy=strategy,
                    strategy_index=index,
                    candidates_seen=len(candidates),
                )
                return ResolvedElement(element, meta)

            if attempts is not None:
                attempts.append(LocatorAttempt(
                    kind=strategy.kind,
                    locator=strategy.describe(),
                    error=f"{len(candidates)} candidates, none visible and matching",
                ))
        return None

    async def _poll(
        self,
        descriptor: TargetDescriptor,
        *,
        timeout: float,
        interval: float,
        max_polls: Optional[int],
        text_filter: Optional[TextFilter],
        require_enabled: bool,
        between: Optional[Callable[[int], Awaitable[None]]],
        stage: Optional[str],
    ) -> Tuple[Optional[ResolvedElement], List[LocatorAttempt], int]:
        attempts: List[LocatorAttempt] = []

        async def _probe() -> Optional[ResolvedElement]:
            attempts.clear()
            return await self.locate(
                descriptor,
                text_filter=text_filter,
                require_enabled=require_enabled,
                attempts=attempts,
            )

        result = await poll_until(
            _probe,
            timeout,
            interval,
            max_polls=max_polls,
            between=between,
            description=f"target '{descriptor.name}'",
            stage=stage,
        )
        if not result.found:
            return None, list(attempts), result.polls

        resolved = result.value
        meta = replace(resolved.meta, polls=result.polls)
        self.history.append(meta)
        ACTION_LOGGER.log(
            action="locate",
            event="locate",
            target=descriptor.name,
            stage=stage,
            status="ok",
            attempt=result.polls,
            metadata={
                "strategy": meta.strategy.kind,
                "strategy_index": meta.strategy_index,
                "fallback": meta.used_fallback,
            },
        )
        return ResolvedElement(resolved.element, meta), [], result.polls

    async def locate_with_poll(
        self,
        descriptor: TargetDescriptor,
        *,
        timeout: float,
        interval: float,
        max_polls: Optional[int] = None,
        text_filter: Optional[TextFilter] = None,
        require_enabled: bool = False,
        between: Optional[Callable[[int], Awaitable[None]]] = None,
        stage: Optional[str] = None,
    ) -> Optional[ResolvedElement]:
        """
        Retry the full strategy list every ``interval`` seconds until a match,
        the deadline or ``max_polls`` poll cycles. Returns None only after the
        budget is spent.
        """
        resolved, _, _ = await self._poll(
            descriptor,
            timeout=timeout,
            interval=interval,
            max_polls=max_polls,
            text_filter=text_filter,
            require_enabled=require_enabled,
            between=between,
            stage=stage,
        )
        return resolved

    async def require(
        self,
        descriptor: TargetDescriptor,
        *,
        timeout: float,
        interval: float,
        max_polls: Optional[int] = None,
        text_filter: Optional[TextFilter] = None,
        require_enabled: bool = False,
        between: Optional[Callable[[int], Awaitable[None]]] = None,
        stage: Optional[str] = None,
    ) -> ResolvedElement:
        """
        locate_with_poll for callers that treat a miss as fatal.

        @throws ElementNotFoundError with the strategy attempts of the last poll
        """
        resolved, attempts, polls = await self._poll(
            descriptor,
            timeout=timeout,
            interval=interval,
            max_polls=max_polls,
            text_filter=text_filter,
            require_enabled=require_enabled,
            between=between,
            stage=stage,
        )
        if resolved is None:
            raise ElementNotFoundError(descriptor.name, attempts=attempts, timeout=timeout, polls=polls)
        return resolved
