import asyncio

import pytest

from locator_heal.browser import playwright_page
from locator_heal.browser.playwright_page import PlaywrightPage
from locator_heal.core.models import ElementInfo


class StubElement:
    """Stands in for an ElementHandle."""

    def __init__(self, label, evaluated=None, attrs=None):
        self.label = label
        self.evaluated = evaluated or {}
        self.attrs = attrs or {}

    async def evaluate(self, script):
        return dict(self.evaluated)

    async def get_attribute(self, name):
        return self.attrs.get(name)

    def as_element(self):
        return self


class StubJSHandle:
    def __init__(self, value):
        self.value = value
        self.disposed = False

    async def get_property(self, name):
        return StubJSHandle(self.value[name])

    async def get_properties(self):
        # arrays come back keyed by index; order is not guaranteed
        return {str(i): StubJSHandle(v) for i, v in reversed(list(enumerate(self.value)))}

    async def json_value(self):
        return self.value

    def as_element(self):
        return self.value

    async def dispose(self):
        self.disposed = True


class StubLocator:
    def __init__(self, handles):
        self.handles = handles

    async def element_handles(self):
        return self.handles


class StubPage:
    def __init__(self, *, by_selector=None, by_role=(), snapshot=None):
        self.by_selector = by_selector or {}
        self.by_role = list(by_role)
        self.snapshot = snapshot
        self.snapshot_handle = None
        self.calls = []

    async def query_selector_all(self, selector):
        self.calls.append(("query_selector_all", selector))
        return self.by_selector.get(selector, [])

    def get_by_role(self, role, **kwargs):
        self.calls.append(("get_by_role", role, kwargs))
        return StubLocator(self.by_role)

    async def evaluate_handle(self, script, arg):
        self.calls.append(("evaluate_handle", arg))
        self.snapshot_handle = StubJSHandle(self.snapshot)
        return self.snapshot_handle


def run(coro):
    return asyncio.run(coro)


# ---------- element queries ----------


def test_find_by_attribute_uses_quoted_css():
    btn = StubElement("btn")
    page = StubPage(by_selector={'[data-testid="submit-btn"]': [btn]})
    assert run(PlaywrightPage(page).find_by_attribute("data-testid", "submit-btn")) == [btn]


def test_find_by_role_with_role_uses_exact_accessible_name():
    btn = StubElement("btn")
    page = StubPage(by_role=[btn])
    assert run(PlaywrightPage(page).find_by_role("button", "Submit")) == [btn]
    assert page.calls == [("get_by_role", "button", {"name": "Submit", "exact": True})]


def test_find_by_role_without_role_falls_back_to_aria_label():
    close = StubElement("close")
    page = StubPage(by_selector={'[aria-label="Close"]': [close]})
    assert run(PlaywrightPage(page).find_by_role(None, "Close")) == [close]
    assert page.calls == [("query_selector_all", '[aria-label="Close"]')]


# ---------- text candidates ----------


def test_text_candidates_pair_rows_with_elements_from_one_snapshot():
    save, docs = StubElement("save"), StubElement("docs")
    page = StubPage(snapshot={
        "elements": [save, docs],
        "rows": [
            {"tag": "button", "text": "Save", "fromChildren": True},
            {"tag": "a", "text": "Docs", "fromChildren": False},
        ],
    })
    candidates = run(PlaywrightPage(page).text_candidates())

    assert page.calls == [("evaluate_handle", "body *")]
    assert [(c.element, c.text, c.tag, c.from_children) for c in candidates] == [
        (save, "Save", "button", True),
        (docs, "Docs", "a", False),
    ]
    assert page.snapshot_handle.disposed


def test_text_candidates_scoped_to_tag():
    page = StubPage(snapshot={"elements": [], "rows": []})
    assert run(PlaywrightPage(page).text_candidates("button")) == []
    assert page.calls == [("evaluate_handle", "button")]


def test_text_candidates_reject_inconsistent_snapshot():
    page = StubPage(snapshot={"elements": [StubElement("a")], "rows": []})
    with pytest.raises(RuntimeError):
        run(PlaywrightPage(page).text_candidates("a"))


def test_capture_and_matching_share_the_text_rule():
    assert "ownText(el) || fullText(el)" in playwright_page._DESCRIBE_JS
    assert "slice(" not in playwright_page._DESCRIBE_JS
    assert "ownText(el)" in playwright_page._TEXT_CANDIDATES_JS
    assert "fromChildren = true" in playwright_page._TEXT_CANDIDATES_JS


# ---------- describe ----------


def test_describe_drops_missing_fields():
    el = StubElement("btn", evaluated={
        "tagName": "button",
        "text": "Save",
        "testId": "save-btn",
        "ariaRole": None,
        "ariaLabel": None,
        "cssPath": "form > button",
        "elementId": None,
        "classes": ["primary"],
        "inputType": "submit",
    })
    info = run(PlaywrightPage(StubPage()).describe(el))
    assert info == ElementInfo(
        tag_name="button",
        text="Save",
        test_id="save-btn",
        css_path="form > button",
        classes=("primary",),
        input_type="submit",
    )


def test_describe_reads_custom_testid_attribute():
    el = StubElement("btn", evaluated={"tagName": "button", "testId": "ignored"}, attrs={"data-qa": "save"})
    info = run(PlaywrightPage(StubPage(), testid_attribute="data-qa").describe(el))
    assert info.test_id == "save"

    missing = StubElement("btn", evaluated={"tagName": "button", "testId": "ignored"})
    assert run(PlaywrightPage(StubPage(), testid_attribute="data-qa").describe(missing)).test_id is None
