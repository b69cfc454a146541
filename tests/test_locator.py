# tests/test_locator.py
"""
Tests for ordered-strategy element resolution.
"""

import asyncio

import pytest

from postauto.element import AttributeMatch, LabelMatch, StructuralMatch, TargetDescriptor, TextFilter
from postauto.exceptions import ElementNotFoundError
from postauto.locator import ElementLocator

from fakes import FakeElement, FakePage


def run(coro):
    return asyncio.run(coro)


BUTTONS = "button, [role='button']"

POST_BUTTON = TargetDescriptor(
    "post_submit",
    (
        AttributeMatch("button[data-test-id='share-actions-primary-button']"),
        LabelMatch(("Post",)),
        StructuralMatch(".share-actions__primary-action"),
    ),
)


class TestLocate:
    """Tests for a single locate pass."""

    def test_first_matching_strategy_wins_even_if_later_ones_match(self):
        page = FakePage()
        first = page.add("button[data-test-id='share-actions-primary-button']", FakeElement(text="Post"))[0]
        page.add(BUTTONS, FakeElement(text="Post"))
        page.add(".share-actions__primary-action", FakeElement(text="Post"))

        resolved = run(ElementLocator(page).locate(POST_BUTTON))

        assert resolved.element is first
        assert resolved.meta.strategy_index == 0
        assert not resolved.meta.used_fallback

    def test_falls_through_to_later_strategy(self):
        page = FakePage()
        page.add("button[data-test-id='share-actions-primary-button']", FakeElement(text="Post", visible=False))
        structural = page.add(".share-actions__primary-action", FakeElement(text="Post"))[0]

        resolved = run(ElementLocator(page).locate(POST_BUTTON))

        assert resolved.element is structural
        assert resolved.meta.strategy.kind == "structural"
        assert resolved.meta.used_fallback

    def test_first_visible_element_in_document_order(self):
        page = FakePage()
        hidden, second, third = page.add(
            "button[data-test-id='share-actions-primary-button']",
            FakeElement(text="Post", visible=False),
            FakeElement(text="Post"),
            FakeElement(text="Post"),
        )
        resolved = run(ElementLocator(page).locate(POST_BUTTON))
        assert resolved.element is second

    def test_not_found_returns_none(self):
        attempts = []
        resolved = run(ElementLocator(FakePage()).locate(POST_BUTTON, attempts=attempts))
        assert resolved is None
        assert [a.kind for a in attempts] == ["attribute", "label", "structural"]

    def test_label_match_is_case_insensitive_substring(self):
        page = FakePage()
        share = page.add(BUTTONS, FakeElement(labels=["Share"]), FakeElement(labels=["Start a POST"]))[1]
        target = TargetDescriptor("composer_trigger", (LabelMatch(("start a post",)),))
        assert run(ElementLocator(page).locate(target)).element is share

    def test_text_filter_include_and_exclude(self):
        page = FakePage()
        repost, post = page.add(
            "button[data-test-id='share-actions-primary-button']",
            FakeElement(text="Repost"),
            FakeElement(text="Post"),
        )
        text_filter = TextFilter(include=("post",), exclude=("repost",))
        resolved = run(ElementLocator(page).locate(POST_BUTTON, text_filter=text_filter))
        assert resolved.element is post

    def test_require_enabled_skips_disabled(self):
        page = FakePage()
        page.add("button[data-test-id='share-actions-primary-button']", FakeElement(text="Post", enabled=False))
        fallback = page.add(BUTTONS, FakeElement(text="Post"))[0]
        resolved = run(ElementLocator(page).locate(POST_BUTTON, require_enabled=True))
        assert resolved.element is fallback

    def test_structural_hints_narrow_candidates(self):
        page = FakePage()
        selector = "textarea, input[type='text'], div[contenteditable='true']"
        search, editor = page.add(
            selector,
            FakeElement(labels=["Search"]),
            FakeElement(labels=["What do you want to talk about?"]),
        )
        target = TargetDescriptor("editor_fallback", (StructuralMatch(selector, hints=("post", "share", "what")),))
        assert run(ElementLocator(page).locate(target)).element is editor

    def test_detached_candidate_is_a_miss(self):
        page = FakePage()
        page.add("button[data-test-id='share-actions-primary-button']", FakeElement(text="Post", detached=True))
        label = page.add(BUTTONS, FakeElement(text="Post"))[0]
        assert run(ElementLocator(page).locate(POST_BUTTON)).element is label

    def test_detached_element_inside_label_strategy_keeps_first_strategy(self):
        page = FakePage()
        page.add(BUTTONS, FakeElement(labels=["Start a post"], detached=True), FakeElement(labels=["Start a post"]))
        page.add(".share-box-feed-entry__trigger", FakeElement(labels=["Start a post"]))
        target = TargetDescriptor(
            "composer_trigger",
            (LabelMatch(("start a post",)), StructuralMatch(".share-box-feed-entry__trigger")),
        )

        resolved = run(ElementLocator(page).locate(target))

        assert resolved.meta.strategy_index == 0
        assert resolved.element is page.dom[BUTTONS][1]

    def test_detached_element_inside_hinted_structural_strategy(self):
        page = FakePage()
        selector = "div[contenteditable='true']"
        page.add(selector, FakeElement(labels=["What do you want to talk about?"], detached=True),
                 FakeElement(labels=["What do you want to talk about?"]))
        target = TargetDescriptor("editor_fallback", (StructuralMatch(selector, hints=("what",)),))

        resolved = run(ElementLocator(page).locate(target))

        assert resolved.element is page.dom[selector][1]

    def test_locate_never_mutates_page(self):
        page = FakePage()
        el = page.add(".share-actions__primary-action", FakeElement(text="Post"))[0]
        run(ElementLocator(page).locate(POST_BUTTON))
        assert el.clicks == 0
        assert page.pressed == []
        assert page.scrolls == []


class TestLocateWithPoll:
    """Tests for the bounded-poll variants."""

    def test_finds_element_rendered_later(self):
        page = FakePage()
        late = FakeElement(text="Post")

        def _render(p):
            if len(p.scrolls) == 2:
                p.add(".share-actions__primary-action", late)

        page.on_scroll = _render

        async def _scroll(poll):
            await page.scroll_to(300)

        locator = ElementLocator(page)
        resolved = run(locator.locate_with_poll(POST_BUTTON, timeout=1.0, interval=0.01, max_polls=3, between=_scroll))

        assert resolved.element is late
        assert resolved.meta.polls == 3
        assert locator.history[-1].strategy_index == 2

    def test_returns_none_after_budget(self):
        locator = ElementLocator(FakePage())
        resolved = run(locator.locate_with_poll(POST_BUTTON, timeout=0.05, interval=0.01))
        assert resolved is None
        assert locator.history == []

    def test_require_raises_not_found_with_attempts(self):
        with pytest.raises(ElementNotFoundError) as exc_info:
            run(ElementLocator(FakePage()).require(POST_BUTTON, timeout=0.05, interval=0.01, max_polls=2))

        err = exc_info.value
        assert err.target_name == "post_submit"
        assert err.polls == 2
        assert len(err.attempts) == 3
        assert "post_submit" in str(err)


class TestTargetDescriptor:
    def test_empty_strategy_list_rejected(self):
        with pytest.raises(ValueError):
            TargetDescriptor("nothing", ())

