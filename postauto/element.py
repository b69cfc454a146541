# postauto/element.py
"""
@file element.py
@brief Target descriptors, their strategy variants and resolved element wrappers.

A logical target ("password field", "post button") is an immutable ordered
tuple of strategies. Each strategy variant knows how to list its structural
candidates on a page; visibility, enabled-state and text filtering are applied
afterwards by the locator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Sequence, Tuple, Union

from .interfaces import IElement, IPage

DEFAULT_LABEL_TAGS: Tuple[str, ...] = ("button", "[role='button']")


def _contains_any(texts: Sequence[str], needles: Sequence[str]) -> bool:
    lowered = [t.lower() for t in texts]
    return any(n.lower() in t for t in lowered for n in needles)


async def _labelled(elements: Sequence[IElement], needles: Sequence[str]) -> List[IElement]:
    """Elements whose label texts contain one of ``needles``; detached ones are skipped."""
    found = []
    for el in elements:
        try:
            texts = await el.label_texts()
        except Exception:
            continue
        if _contains_any(texts, needles):
            found.append(el)
    return found


@dataclass(frozen=True)
class AttributeMatch:
    """Match by a CSS attribute selector, e.g. ``input[name="session_key"]``."""
    selector: str
    kind: ClassVar[str] = "attribute"

    async def candidates(self, page: IPage) -> List[IElement]:
        return await page.query_all(self.selector)

    def describe(self) -> Dict[str, Any]:
        return {"selector": self.selector}


@dataclass(frozen=True)
class LabelMatch:
    """Match interactive elements whose visible text or accessible label contains one of ``labels``."""
    labels: Tuple[str, ...]
    tags: Tuple[str, ...] = DEFAULT_LABEL_TAGS
    kind: ClassVar[str] = "label"

    async def candidates(self, page: IPage) -> List[IElement]:
        return await _labelled(await page.query_all(", ".join(self.tags)), self.labels)

    def describe(self) -> Dict[str, Any]:
        return {"labels": list(self.labels), "tags": list(self.tags)}


@dataclass(frozen=True)
class StructuralMatch:
    """
    Match by page structure (CSS or ``xpath=``), optionally narrowed to
    elements whose text, label or placeholder contains one of ``hints``.
    """
    selector: str
    hints: Tuple[str, ...] = ()
    kind: ClassVar[str] = "structural"

    async def candidates(self, page: IPage) -> List[IElement]:
        elements = await page.query_all(self.selector)
        if not self.hints:
            return elements
        return await _labelled(elements, self.hints)

    def describe(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"selector": self.selector}
        if self.hints:
            data["hints"] = list(self.hints)
        return data


Strategy = Union[AttributeMatch, LabelMatch, StructuralMatch]


@dataclass(frozen=True)
class TargetDescriptor:
    """Ordered, immutable strategy list for one logical UI target."""
    name: str
    strategies: Tuple[Strategy, ...]

    def __post_init__(self) -> None:
        if not self.strategies:
            raise ValueError(f"Target '{self.name}' needs at least one strategy")


@dataclass(frozen=True)
class TextFilter:
    """
    Case-insensitive substring predicate over an element's text and labels.

    Passes when any text contains one of ``include`` (or include is empty)
    and no text contains one of ``exclude``.
    """
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()

    @classmethod
    def any_of(cls, *needles: str) -> TextFilter:
        return cls(include=tuple(needles))

    def matches(self, texts: Sequence[str]) -> bool:
        if self.include and not _contains_any(texts, self.include):
            return False
        if self.exclude and _contains_any(texts, self.exclude):
            return False
        return True


@dataclass(frozen=True)
class ElementMeta:
    """
    How an element was resolved. Used for logging, run notes and reports.
    """
    name: str
    strategy: Strategy
    strategy_index: int
    polls: int = 1
    candidates_seen: int = field(default=0, compare=False)

    @property
    def used_fallback(self) -> bool:
        return self.strategy_index > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.name,
            "strategy": self.strategy.kind,
            "strategy_index": self.strategy_index,
            "locator": self.strategy.describe(),
            "polls": self.polls,
        }


class ResolvedElement:
    """
    A located element plus the metadata of its resolution.

    Transient: valid only until the next navigation or DOM mutation.
    """

    def __init__(self, element: IElement, meta: ElementMeta):
        self._element = element
        self._meta = meta

    @property
    def element(self) -> IElement:
        return self._element

    @property
    def meta(self) -> ElementMeta:
        return self._meta

    @property
    def name(self) -> str:
        return self._meta.name

    async def click(self) -> None:
        await self._element.click()

    async def type(self, text: str, delay_ms: int = 0) -> None:
        await self._element.type(text, delay_ms=delay_ms)

    async def read_text(self) -> str:
        return await self._element.read_text()

    def __repr__(self) -> str:
        return (
            f"ResolvedElement(name={self._meta.name!r}, "
            f"strategy={self._meta.strategy.kind}#{self._meta.strategy_index})"
        )
