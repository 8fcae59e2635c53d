"""
Property bags hold the headers, query parameters, config and body data of
connectors, requests and pending requests.

Merging always applies sources left to right, so the last writer wins. Values
that are mappings on both sides are merged one level deep instead of being
replaced.
"""

from collections.abc import Iterator
from collections.abc import Mapping
from typing import Any
from typing import Optional
from typing import Union

from relay_sdk.enums import DataType
from relay_sdk.exceptions import DataBagError
from relay_sdk.exceptions import LockedBagError


def _merge_value(current: Any, value: Any) -> Any:
    if isinstance(current, Mapping) and isinstance(value, Mapping):
        return {**current, **value}
    return value


def snapshot(value: Any) -> Any:
    """Shallow copy of mappings and lists; other values are returned as-is."""
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, list):
        return list(value)
    return value


class PropertyBag:
    """
    Ordered string-keyed container with "last writer wins" merge semantics.

    Example:
        bag = PropertyBag({"timeout": 10})
        bag.merge({"timeout": 30}, None, {"verify": False})
        bag.all()  # {"timeout": 30, "verify": False}
    """

    def __init__(self, items: Optional[Mapping[str, Any]] = None):
        # normalized key -> (key as written, value)
        self._items: dict[str, tuple[str, Any]] = {}
        self._locked = False
        if items:
            self.merge(items)

    def _normalize(self, key: str) -> str:
        return key

    def _ensure_unlocked(self) -> None:
        if self._locked:
            raise LockedBagError(
                f"{type(self).__name__} is locked because the request has been dispatched."
            )

    def all(self) -> dict[str, Any]:
        """Return a snapshot of the bag."""
        return {name: snapshot(value) for name, value in self._items.values()}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._items.get(self._normalize(key))
        return default if entry is None else entry[1]

    def has(self, key: str) -> bool:
        return self._normalize(key) in self._items

    def add(self, key: str, value: Any) -> "PropertyBag":
        self._ensure_unlocked()
        self._items[self._normalize(key)] = (key, value)
        return self

    def set(self, items: Optional[Mapping[str, Any]]) -> "PropertyBag":
        """Replace the whole content of the bag."""
        self._ensure_unlocked()
        self._items = {}
        return self.merge(items)

    def remove(self, key: str) -> "PropertyBag":
        self._ensure_unlocked()
        self._items.pop(self._normalize(key), None)
        return self

    def merge(self, *sources: Union[Mapping[str, Any], "PropertyBag", None]) -> "PropertyBag":
        """Apply each source in order; ``None`` sources are skipped."""
        self._ensure_unlocked()
        for source in sources:
            if source is None:
                continue
            items = source.all() if isinstance(source, PropertyBag) else source
            for key, value in items.items():
                self.add(key, _merge_value(self.get(key), value))
        return self

    def is_empty(self) -> bool:
        return not self._items

    def lock(self) -> None:
        self._locked = True

    @property
    def locked(self) -> bool:
        return self._locked

    def copy(self) -> "PropertyBag":
        clone = type(self)()
        clone._items = {key: (name, snapshot(value)) for key, (name, value) in self._items.items()}
        return clone

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __getitem__(self, key: str) -> Any:
        entry = self._items.get(self._normalize(key))
        if entry is None:
            raise KeyError(key)
        return entry[1]

    def __iter__(self) -> Iterator[str]:
        return iter([name for name, _ in self._items.values()])

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.all()!r})"


class HeaderBag(PropertyBag):
    """
    Header container with case-insensitive keys.

    The spelling of the last write is the one sent on the wire.
    """

    def _normalize(self, key: str) -> str:
        return key.lower()


class DataBag:
    """
    Body data of a request, tagged with the DataType used to encode it.

    JSON, FORM and MULTIPART data is a mapping and merges key by key. A JSON
    body may also be a list; a list is never merged, the later source replaces
    the whole body. MIXED data is a raw body (str, bytes, mapping or iterable)
    and is replaced as a whole.
    """

    def __init__(self, data_type: Optional[DataType] = None):
        self._data_type = data_type
        self._data: Any = None
        self._locked = False

    @staticmethod
    def _is_empty_value(value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, (Mapping, str, bytes, list, tuple)):
            return len(value) == 0
        return False

    @staticmethod
    def _validate(data_type: Optional[DataType], value: Any) -> None:
        if DataBag._is_empty_value(value):
            return
        if data_type is None:
            raise DataBagError(
                "Body data cannot be stored before a data type is set.", details=value
            )
        if data_type is DataType.JSON and isinstance(value, list):
            return
        if data_type.is_arrayable() and not isinstance(value, Mapping):
            raise DataBagError(
                f"The {data_type.value} data type expects a mapping, got {type(value).__name__}.",
                details=value,
            )

    def _ensure_unlocked(self) -> None:
        if self._locked:
            raise LockedBagError("DataBag is locked because the request has been dispatched.")

    @property
    def data_type(self) -> Optional[DataType]:
        return self._data_type

    def set_type(self, data_type: Optional[DataType]) -> "DataBag":
        """Change the data type, re-validating any data already stored."""
        self._ensure_unlocked()
        self._validate(data_type, self._data)
        self._data_type = data_type
        return self

    def set(self, value: Any) -> "DataBag":
        """Replace the whole body."""
        self._ensure_unlocked()
        self._validate(self._data_type, value)
        self._data = snapshot(value)
        return self

    def add(self, key: str, value: Any) -> "DataBag":
        self._ensure_unlocked()
        self._require_keyed()
        data = dict(self._data or {})
        data[key] = value
        self._data = data
        return self

    def remove(self, key: str) -> "DataBag":
        self._ensure_unlocked()
        self._require_keyed()
        if self._data:
            self._data.pop(key, None)
        return self

    def get(self, key: str, default: Any = None) -> Any:
        if isinstance(self._data, Mapping):
            return self._data.get(key, default)
        return default

    def merge(self, *sources: Union[Mapping[str, Any], list, None]) -> "DataBag":
        """
        Merge sources in order; only valid for arrayable data types.

        Mappings merge key by key. When either side is a JSON list, the later
        non-empty source replaces the body.
        """
        self._ensure_unlocked()
        self._require_arrayable()
        data = snapshot(self._data) if self._data is not None else {}
        for source in sources:
            if self._is_empty_value(source):
                continue
            self._validate(self._data_type, source)
            if isinstance(source, list) or not isinstance(data, Mapping):
                data = snapshot(source)
                continue
            data = dict(data)
            for key, value in source.items():
                data[key] = _merge_value(data.get(key), value)
        self._data = data
        return self

    def _require_arrayable(self) -> None:
        if self._data_type is None or not self._data_type.is_arrayable():
            kind = self._data_type.value if self._data_type else "undeclared"
            raise DataBagError(f"Cannot merge keyed data into a {kind} body.")

    def _require_keyed(self) -> None:
        self._require_arrayable()
        if isinstance(self._data, list):
            raise DataBagError("Cannot set keys on a JSON list body.", details=self._data)

    def all(self) -> Any:
        """Return a snapshot: a dict (or JSON list) for keyed types, the raw body otherwise."""
        if self._data_type is None or self._data_type.is_arrayable():
            if isinstance(self._data, list):
                return list(self._data)
            return dict(self._data or {})
        return snapshot(self._data)

    def is_empty(self) -> bool:
        return self._is_empty_value(self._data)

    def is_not_empty(self) -> bool:
        return not self.is_empty()

    def lock(self) -> None:
        self._locked = True

    @property
    def locked(self) -> bool:
        return self._locked

    def __repr__(self) -> str:
        return f"DataBag({self._data_type}, {self._data!r})"
