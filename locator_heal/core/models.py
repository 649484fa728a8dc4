# locator_heal/core/models.py
from __future__ import annotations

"""Healing data model
--------------------
Pydantic models for the element snapshot recorded when a selector last
worked, the result of a single strategy attempt, and the outcome returned
to callers after a full healing run.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def normalize_text(value: Optional[str]) -> str:
    """Collapse runs of whitespace and case-fold. None becomes ""."""
    if not value:
        return ""
    return " ".join(value.split()).casefold()


# ---------- Element snapshot ----------


class ElementInfo(BaseModel):
    """
    Observable attributes of an element at the time its selector last matched.

    Immutable: a newer successful match replaces the whole record, fields are
    never merged one by one. Accepts snake_case or camelCase keys so records
    written by other tooling (``{"testId": ...}``) load unchanged.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel, extra="ignore")

    tag_name: Optional[str] = None
    text: Optional[str] = Field(default=None, validation_alias=AliasChoices("text", "textContent"))
    test_id: Optional[str] = None
    aria_role: Optional[str] = None
    aria_label: Optional[str] = None
    css_path: Optional[str] = Field(default=None, description="Ancestor chain fingerprint, e.g. 'form > div:nth-of-type(2) > button'")

    element_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("element_id", "elementId", "id"))
    classes: tuple[str, ...] = ()
    name: Optional[str] = None
    placeholder: Optional[str] = None
    href: Optional[str] = None
    input_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("input_type", "inputType", "type"))

    @property
    def normalized_text(self) -> str:
        return normalize_text(self.text)

    def to_record(self) -> dict[str, Any]:
        """Serializable form used by the stores (camelCase, empty fields dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude_defaults=True, mode="json")


# ---------- Strategy result ----------


class StrategyResult(BaseModel):
    """
    Outcome of one strategy attempt.

    success=True always carries a selector; success=False never carries a
    selector or an element. `element` is the live handle for the current
    session only and is excluded from serialization.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: bool
    selector: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    element: Optional[Any] = Field(default=None, exclude=True, repr=False)
    details: str = ""

    @model_validator(mode="after")
    def _check_consistency(self) -> "StrategyResult":
        if self.success and not self.selector:
            raise ValueError("a successful result must carry a replacement selector")
        if not self.success and (self.selector is not None or self.element is not None):
            raise ValueError("a declined result cannot carry a selector or element")
        return self

    @classmethod
    def matched(cls, selector: str, confidence: float, element: Any = None, details: str = "") -> "StrategyResult":
        return cls(success=True, selector=selector, confidence=confidence, element=element, details=details)

    @classmethod
    def declined(cls, details: str = "") -> "StrategyResult":
        return cls(success=False, details=details)


# ---------- Healing outcome ----------


class AttemptStatus(str, Enum):
    matched = "matched"
    declined = "declined"
    faulted = "faulted"
    skipped = "skipped"  # deadline expired before the strategy ran


class StrategyAttempt(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy: str
    status: AttemptStatus
    details: str = ""
    elapsed_ms: int = Field(default=0, ge=0)


class HealingOutcome(BaseModel):
    """
    Single result of a healing run: the winning StrategyResult tagged with the
    producing strategy name, or an unresolved outcome when every strategy
    declined. Built fresh per run and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    original_selector: str
    strategy: Optional[str] = None
    result: Optional[StrategyResult] = None
    attempts: tuple[StrategyAttempt, ...] = ()
    timed_out: bool = False
    elapsed_ms: int = Field(default=0, ge=0)
    details: str = ""

    @model_validator(mode="after")
    def _check_shape(self) -> "HealingOutcome":
        if self.result is not None:
            if not self.result.success:
                raise ValueError("a healing outcome only carries successful results")
            if not self.strategy:
                raise ValueError("a healed outcome must name the producing strategy")
        elif self.strategy is not None:
            raise ValueError("an unresolved outcome cannot name a strategy")
        return self

    @classmethod
    def healed(
        cls,
        original_selector: str,
        strategy: str,
        result: StrategyResult,
        attempts: tuple[StrategyAttempt, ...] = (),
        elapsed_ms: int = 0,
    ) -> "HealingOutcome":
        return cls(
            original_selector=original_selector,
            strategy=strategy,
            result=result,
            attempts=attempts,
            elapsed_ms=elapsed_ms,
            details=result.details,
        )

    @classmethod
    def unresolved(
        cls,
        original_selector: str,
        attempts: tuple[StrategyAttempt, ...] = (),
        *,
        timed_out: bool = False,
        elapsed_ms: int = 0,
        details: str = "",
    ) -> "HealingOutcome":
        if not details:
            details = "healing deadline expired" if timed_out else "no strategy matched"
        return cls(
            original_selector=original_selector,
            attempts=attempts,
            timed_out=timed_out,
            elapsed_ms=elapsed_ms,
            details=details,
        )

    @property
    def resolved(self) -> bool:
        return self.result is not None

    @property
    def selector(self) -> Optional[str]:
        return self.result.selector if self.result else None

    @property
    def confidence(self) -> Optional[float]:
        return self.result.confidence if self.result else None

    @property
    def element(self) -> Any:
        return self.result.element if self.result else None

    def summary(self) -> str:
        """One-line, user-facing description for reports and assertion messages."""
        if self.result is not None:
            conf = f"{self.result.confidence:.2f}" if self.result.confidence is not None else "n/a"
            return (
                f"Healed {self.original_selector!r} -> {self.result.selector!r} "
                f"via {self.strategy} (confidence {conf})"
            )
        tried = ", ".join(f"{a.strategy}={a.status.value}" for a in self.attempts) or "none"
        return f"Could not heal {self.original_selector!r}: {self.details} (tried: {tried})"


# ---------- Page query results ----------


@dataclass(frozen=True)
class TextCandidate:
    """
    An element paired with the text the text strategy matches on: its own
    text nodes, or its full text when it has none of its own
    (`from_children=True`, e.g. ``<button><span>Save</span></button>``).
    """
    element: Any
    text: str
    tag: Optional[str] = None
    from_children: bool = False


# ---------- Healed mapping ----------


class HealedMapping(BaseModel):
    """
    Replacement selector accepted by the caller for a broken one. Checked
    before any strategy runs on the next attempt for the same selector.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    selector: str = Field(min_length=1)
    strategy: str
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    use_count: int = Field(default=1, ge=1)
    healed_at: Optional[str] = None

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
