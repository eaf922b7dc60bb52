from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, MutableMapping, Optional


class ConfigStore:
    """Thread-safe JSON-backed store of named settings sections."""

    def __init__(self, path: Path, defaults: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self._path = path
        self._lock = threading.RLock()
        self._defaults = {key.lower(): dict(value) for key, value in (defaults or {}).items()}
        self._data: Dict[str, Dict[str, Any]] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            self._data = {}
            return
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, json.JSONDecodeError):
            self._data = {}
            return
        if isinstance(raw, dict):
            self._data = {key.lower(): value for key, value in raw.items() if isinstance(value, dict)}
        else:
            self._data = {}

    def save(self) -> None:
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            with tmp.open("w", encoding="utf-8") as handle:
                json.dump(self._data, handle, indent=2, sort_keys=True)
            tmp.replace(self._path)

    def get_section(self, name: str) -> "SectionConfig":
        name = name.lower()
        with self._lock:
            snapshot = dict(self._defaults.get(name, {}))
            snapshot.update(self._data.get(name, {}))
        return SectionConfig(self, name, snapshot)

    def _get_bucket(self, name: str) -> Dict[str, Any]:
        name = name.lower()
        with self._lock:
            merged = dict(self._defaults.get(name, {}))
            merged.update(self._data.get(name, {}))
            return merged

    def update_section(self, name: str, values: Dict[str, Any]) -> None:
        name = name.lower()
        with self._lock:
            bucket = self._data.setdefault(name, {})
            bucket.update(values)
            self.save()

    def set_value(self, name: str, key: str, value: Any) -> None:
        self.update_section(name, {key: value})

    def write_section(self, name: str, values: Dict[str, Any]) -> None:
        name = name.lower()
        with self._lock:
            self._data[name] = dict(values)
            self.save()

    def remove_section(self, name: str) -> None:
        name = name.lower()
        with self._lock:
            if name in self._data:
                del self._data[name]
                self.save()

    def get_snapshot(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return json.loads(json.dumps(self._data))


class SectionConfig(MutableMapping[str, Any]):
    """Mapping view over one settings section (e.g. ``labels`` or ``builder``)."""

    def __init__(self, store: ConfigStore, name: str, cache: Optional[Dict[str, Any]] = None) -> None:
        self._store = store
        self._name = name
        self._cache = cache or {}

    @property
    def name(self) -> str:
        return self._name

    def __getitem__(self, key: str) -> Any:
        return self._cache[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._cache[key] = value
        self._store.set_value(self._name, key, value)

    def __delitem__(self, key: str) -> None:
        if key not in self._cache:
            raise KeyError(key)
        del self._cache[key]
        self._store.write_section(self._name, self._cache)

    def __iter__(self) -> Iterator[str]:
        return iter(self._cache)

    def __len__(self) -> int:
        return len(self._cache)

    def get(self, key: str, default: Any = None) -> Any:
        return self._cache.get(key, default)

    def update(self, other: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:  # type: ignore[override]
        payload: Dict[str, Any] = {}
        if other:
            payload.update(other)
        if kwargs:
            payload.update(kwargs)
        if not payload:
            return
        self._cache.update(payload)
        self._store.update_section(self._name, payload)

    def clear(self) -> None:  # type: ignore[override]
        if not self._cache:
            return
        self._cache.clear()
        self._store.write_section(self._name, self._cache)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._cache)

    def refresh(self) -> None:
        self._cache = self._store._get_bucket(self._name)
