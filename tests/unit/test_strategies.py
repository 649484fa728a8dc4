import asyncio

import pytest

from locator_heal.core.models import ElementInfo
from locator_heal.strategies import AriaStrategy, DataTestIdStrategy, TextStrategy, text_similarity

from fakes import FakeElement, FakePage


def heal(strategy, info, page, selector="#broken"):
    return asyncio.run(strategy.heal(selector, info, page))


ALL_STRATEGIES = [DataTestIdStrategy, AriaStrategy, TextStrategy]


# ---------- missing signal ----------


@pytest.mark.parametrize("cls", ALL_STRATEGIES)
def test_absent_info_declines_without_querying(cls):
    page = FakePage([FakeElement("button", "Go", {"data-testid": "go", "aria-label": "Go"})])
    result = heal(cls(), None, page)
    assert not result.success
    assert result.selector is None and result.element is None
    assert page.calls == []


@pytest.mark.parametrize("cls", ALL_STRATEGIES)
def test_info_without_required_field_declines(cls):
    page = FakePage([FakeElement("button", "Go")])
    result = heal(cls(), ElementInfo(tag_name="button"), page)
    assert not result.success
    assert page.calls == []


# ---------- data-testid ----------


def test_testid_unique_match():
    target = FakeElement("button", "Submit", {"data-testid": "submit-btn"})
    page = FakePage([target, FakeElement("button", "Cancel", {"data-testid": "cancel-btn"})])
    result = heal(DataTestIdStrategy(), ElementInfo(test_id="submit-btn"), page)
    assert result.success
    assert result.selector == '[data-testid="submit-btn"]'
    assert result.confidence == 1.0
    assert result.element is target


def test_testid_ambiguous_declines():
    page = FakePage([
        FakeElement("button", attrs={"data-testid": "row"}),
        FakeElement("button", attrs={"data-testid": "row"}),
    ])
    result = heal(DataTestIdStrategy(), ElementInfo(test_id="row"), page)
    assert not result.success
    assert "2 elements" in result.details


def test_testid_missing_declines():
    page = FakePage([FakeElement("button", attrs={"data-testid": "other"})])
    assert not heal(DataTestIdStrategy(), ElementInfo(test_id="submit-btn"), page).success


def test_testid_custom_attribute():
    page = FakePage([FakeElement("button", attrs={"data-qa": "submit"})])
    result = heal(DataTestIdStrategy(attribute="data-qa"), ElementInfo(test_id="submit"), page)
    assert result.success
    assert result.selector == '[data-qa="submit"]'


def test_testid_selector_escapes_quotes():
    page = FakePage([FakeElement("button", attrs={"data-testid": 'say "hi"'})])
    result = heal(DataTestIdStrategy(), ElementInfo(test_id='say "hi"'), page)
    assert result.selector == '[data-testid="say \\"hi\\""]'


# ---------- aria-label ----------


def test_aria_with_role_uses_role_selector():
    target = FakeElement("button", attrs={"aria-label": "Submit"}, role="button")
    page = FakePage([target, FakeElement("a", attrs={"aria-label": "Submit"}, role="link")])
    result = heal(AriaStrategy(), ElementInfo(aria_role="button", aria_label="Submit"), page)
    assert result.success
    assert result.element is target
    assert result.selector == 'role=button[name="Submit"s]'
    assert result.confidence == pytest.approx(0.9)


def test_aria_without_role_uses_attribute_selector():
    page = FakePage([FakeElement("button", attrs={"aria-label": "Close"})])
    result = heal(AriaStrategy(), ElementInfo(aria_label="Close"), page)
    assert result.success
    assert result.selector == '[aria-label="Close"]'
    assert page.calls == [("find_by_role", (None, "Close"))]


def test_aria_ambiguous_declines():
    page = FakePage([
        FakeElement("button", attrs={"aria-label": "Close"}),
        FakeElement("span", attrs={"aria-label": "Close"}),
    ])
    assert not heal(AriaStrategy(), ElementInfo(aria_label="Close"), page).success


def test_aria_role_alone_is_not_enough():
    page = FakePage([FakeElement("button", role="button")])
    assert not heal(AriaStrategy(), ElementInfo(aria_role="button"), page).success
    assert page.calls == []


# ---------- text ----------


def test_text_exact_normalized_match():
    target = FakeElement("a", "  Click\n  here ")
    page = FakePage([target, FakeElement("a", "Read more")])
    result = heal(TextStrategy(), ElementInfo(text="CLICK HERE"), page)
    assert result.success
    assert result.element is target
    assert result.confidence == pytest.approx(0.75)
    assert result.selector == 'a:text-is("Click here")'


def test_text_ambiguous_exact_declines_without_fuzzy():
    page = FakePage([FakeElement("a", "Click here"), FakeElement("button", "click  HERE")])
    result = heal(TextStrategy(), ElementInfo(text="Click Here"), page)
    assert not result.success
    assert "refusing to guess" in result.details


def test_text_scoped_to_recorded_tag():
    target = FakeElement("button", "Save")
    page = FakePage([FakeElement("a", "Save"), target])
    result = heal(TextStrategy(), ElementInfo(tag_name="button", text="Save"), page)
    assert result.success
    assert result.element is target
    assert page.calls == [("text_candidates", ("button",)), ("find", ('button:text-is("Save")',))]


def test_text_fuzzy_single_candidate():
    target = FakeElement("button", "Submit orders")
    page = FakePage([target, FakeElement("button", "Cancel")])
    result = heal(TextStrategy(), ElementInfo(text="Submit order"), page)
    assert result.success
    assert result.element is target
    assert 0 < result.confidence < 0.75
    assert "fuzzy" in result.details


def test_text_fuzzy_ambiguous_declines():
    page = FakePage([FakeElement("button", "Submit orders"), FakeElement("button", "Submit order!")])
    result = heal(TextStrategy(), ElementInfo(text="Submit order"), page)
    assert not result.success


def test_text_fuzzy_below_threshold_declines():
    page = FakePage([FakeElement("button", "Delete account")])
    assert not heal(TextStrategy(), ElementInfo(text="Submit order"), page).success


def test_text_held_by_child_heals_on_the_page_it_was_captured_from():
    # <button><span>Save</span></button>
    target = FakeElement("button", child_text="Save")
    page = FakePage([target, FakeElement("button", "Cancel")])
    info = asyncio.run(page.describe(target))
    assert info.text == "Save"

    result = heal(TextStrategy(), info, page)
    assert result.success
    assert result.element is target
    assert result.selector == 'button:has-text("Save")'


def test_text_own_text_wins_over_child_text():
    # <button>Save <b>draft</b></button> still addresses the button by its own text node
    target = FakeElement("button", "Save", child_text="draft")
    page = FakePage([target])
    result = heal(TextStrategy(), ElementInfo(tag_name="button", text="Save"), page)
    assert result.success
    assert result.selector == 'button:text-is("Save")'


def test_text_selector_must_resolve_to_one_element():
    page = FakePage([FakeElement("button", child_text="Save"), FakeElement("button", "Save as")])
    result = heal(TextStrategy(), ElementInfo(tag_name="button", text="Save"), page)
    assert not result.success
    assert "2 elements with selector" in result.details
    assert page.methods_called() == ["text_candidates", "find"]


def test_text_blank_recorded_text_declines():
    page = FakePage([FakeElement("button", "Go")])
    assert not heal(TextStrategy(), ElementInfo(text="   "), page).success
    assert page.calls == []


def test_text_threshold_validated():
    with pytest.raises(ValueError):
        TextStrategy(fuzzy_threshold=1.5)


def test_text_similarity_bounds():
    assert text_similarity("save", "save") == 1.0
    assert text_similarity("", "save") == 0.0
    assert 0.0 < text_similarity("save", "saved") < 1.0


def test_text_confidence_lowest_of_the_three():
    assert TextStrategy().confidence < AriaStrategy().confidence < DataTestIdStrategy().confidence


def test_default_priority_order():
    assert DataTestIdStrategy.priority < AriaStrategy.priority < TextStrategy.priority
