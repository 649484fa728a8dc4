# locator_heal/core/store.py
from __future__ import annotations

"""Selector store
----------------
Keyed mapping from an original selector to the ElementInfo recorded the last
time it matched, plus an optional healed mapping the caller accepted for it.
The engine only reads from it; writes happen when the caller decides to
persist a capture or a healed element.

File layout (JSON or YAML, chosen by suffix):

    version: 1
    selectors:
      "#submit":
        tagName: button
        testId: submit-btn
    mappings:
      "#submit":
        selector: '[data-testid="submit-btn"]'
        strategy: data-testid
        confidence: 1.0
        useCount: 3
"""

import json
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Protocol, Tuple, TYPE_CHECKING

import yaml
from pydantic import ValidationError

from locator_heal.core.errors import StoreError
from locator_heal.core.models import ElementInfo, HealedMapping
from locator_heal.utils.logger import get_logger

if TYPE_CHECKING:
    from locator_heal.utils.config import Settings

__all__ = [
    "SelectorStore",
    "InMemorySelectorStore",
    "FileSelectorStore",
    "store_from_settings",
]

STORE_VERSION = 1


class SelectorStore(Protocol):
    def get(self, selector: str) -> Optional[ElementInfo]: ...

    def put(self, selector: str, info: ElementInfo) -> None: ...

    def delete(self, selector: str) -> bool: ...

    def items(self) -> Iterator[Tuple[str, ElementInfo]]: ...

    def get_mapping(self, selector: str) -> Optional[HealedMapping]: ...

    def put_mapping(self, selector: str, mapping: HealedMapping) -> None: ...


class InMemorySelectorStore:
    """
    Process-local store. Records are replaced whole on `put`.

    Every change is built on a copy and only becomes visible once `_flush`
    accepted it, so a failed write leaves the previous state in place.
    """

    def __init__(
        self,
        records: Optional[Dict[str, ElementInfo]] = None,
        mappings: Optional[Dict[str, HealedMapping]] = None,
    ) -> None:
        self._records: Dict[str, ElementInfo] = dict(records or {})
        self._mappings: Dict[str, HealedMapping] = dict(mappings or {})
        self._lock = threading.RLock()

    def get(self, selector: str) -> Optional[ElementInfo]:
        with self._lock:
            return self._records.get(selector)

    def put(self, selector: str, info: ElementInfo) -> None:
        with self._lock:
            self._commit({**self._records, selector: info}, self._mappings)

    def delete(self, selector: str) -> bool:
        """Drop the recorded info and any healed mapping for `selector`."""
        with self._lock:
            if selector not in self._records and selector not in self._mappings:
                return False
            self._commit(
                {k: v for k, v in self._records.items() if k != selector},
                {k: v for k, v in self._mappings.items() if k != selector},
            )
            return True

    def items(self) -> Iterator[Tuple[str, ElementInfo]]:
        with self._lock:
            snapshot = sorted(self._records.items())
        return iter(snapshot)

    def get_mapping(self, selector: str) -> Optional[HealedMapping]:
        with self._lock:
            return self._mappings.get(selector)

    def put_mapping(self, selector: str, mapping: HealedMapping) -> None:
        with self._lock:
            self._commit(self._records, {**self._mappings, selector: mapping})

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, selector: object) -> bool:
        with self._lock:
            return selector in self._records

    def _commit(self, records: Dict[str, ElementInfo], mappings: Dict[str, HealedMapping]) -> None:
        self._flush(records, mappings)
        self._records, self._mappings = records, mappings

    def _flush(self, records: Dict[str, ElementInfo], mappings: Dict[str, HealedMapping]) -> None:
        """Hook for persistent subclasses; called with the lock held, before the change is applied."""
        return None


class FileSelectorStore(InMemorySelectorStore):
    """
    Whole-file store: loaded once at construction, rewritten on every change.
    `.yaml`/`.yml` paths use YAML, anything else JSON.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.log = get_logger(__name__)
        super().__init__(*self._load())

    @property
    def is_yaml(self) -> bool:
        return self.path.suffix.lower() in (".yaml", ".yml")

    def _load(self) -> Tuple[Dict[str, ElementInfo], Dict[str, HealedMapping]]:
        if not self.path.exists():
            return {}, {}
        try:
            raw_text = self.path.read_text(encoding="utf-8")
            data = yaml.safe_load(raw_text) if self.is_yaml else json.loads(raw_text or "{}")
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise StoreError(f"cannot read selector store {self.path}: {e}") from e

        data = data or {}
        if not isinstance(data, dict):
            raise StoreError(f"selector store {self.path} must be a mapping with a 'selectors' mapping")
        records = self._section(data, "selectors", ElementInfo)
        mappings = self._section(data, "mappings", HealedMapping)
        self.log.debug(f"Loaded {len(records)} selector record(s) and {len(mappings)} mapping(s) from {self.path}")
        return records, mappings

    def _section(self, data: Dict[str, Any], key: str, model: Any) -> Dict[str, Any]:
        section = data.get(key) or {}
        if not isinstance(section, dict):
            raise StoreError(f"'{key}' in selector store {self.path} must be a mapping")
        out: Dict[str, Any] = {}
        for selector, raw in section.items():
            try:
                out[str(selector)] = model.model_validate(raw or {})
            except ValidationError as e:
                raise StoreError(f"invalid {key} entry for {selector!r} in {self.path}: {e}") from e
        return out

    def _flush(self, records: Dict[str, ElementInfo], mappings: Dict[str, HealedMapping]) -> None:
        payload: Dict[str, Any] = {
            "version": STORE_VERSION,
            "selectors": {sel: info.to_record() for sel, info in sorted(records.items())},
        }
        if mappings:
            payload["mappings"] = {sel: m.to_record() for sel, m in sorted(mappings.items())}
        if self.is_yaml:
            text = yaml.safe_dump(payload, sort_keys=False, allow_unicode=True)
        else:
            text = json.dumps(payload, indent=2, ensure_ascii=False)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(text, encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            raise StoreError(f"cannot write selector store {self.path}: {e}") from e


def store_from_settings(settings: "Settings") -> SelectorStore:
    if settings.STORE_PATH is None:
        return InMemorySelectorStore()
    return FileSelectorStore(settings.STORE_PATH)
