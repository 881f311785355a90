"""
Base class for all configurations.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional

from pydantic import TypeAdapter, ValidationError

from ..events import EventSource, EventType
from ..exceptions import ConversionError


_TYPE_ADAPTERS: Dict[type, TypeAdapter] = {}


def _adapter(target_type: type) -> TypeAdapter:
    adapter = _TYPE_ADAPTERS.get(target_type)
    if adapter is None:
        adapter = TypeAdapter(target_type)
        _TYPE_ADAPTERS[target_type] = adapter
    return adapter


class AbstractConfiguration(EventSource, ABC):
    """
    Uniform key/value access to a configuration.

    Subclasses implement the ``*_direct`` primitives; this class adds event
    notification around mutations and typed access to property values. A key
    can hold several values, in which case ``get_property`` returns a list.
    """

    def __init__(self):
        super().__init__()

    # Primitives

    @abstractmethod
    def _get_property_direct(self, key: str) -> Any:
        pass

    @abstractmethod
    def _add_property_direct(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def _clear_property_direct(self, key: str) -> None:
        pass

    @abstractmethod
    def _iter_keys(self) -> Iterator[str]:
        pass

    def _set_property_direct(self, key: str, value: Any) -> None:
        self._clear_property_direct(key)
        self._add_values(key, value)

    def _add_values(self, key: str, value: Any) -> None:
        if isinstance(value, (list, tuple)):
            for item in value:
                self._add_property_direct(key, item)
        elif value is not None:
            self._add_property_direct(key, value)

    # Property access

    def get_property(self, key: str) -> Any:
        """Get the value of a key: a single value, a list of values or None."""
        return self._get_property_direct(key)

    def set_property(self, key: str, value: Any) -> None:
        """Replace all values of a key. Lists set multiple values."""
        self.fire_event(EventType.SET_PROPERTY, key, value, before_update=True)
        self._set_property_direct(key, value)
        self.fire_event(EventType.SET_PROPERTY, key, value)

    def add_property(self, key: str, value: Any) -> None:
        """Add a value to a key, keeping existing values. Lists add each element."""
        self.fire_event(EventType.ADD_PROPERTY, key, value, before_update=True)
        self._add_values(key, value)
        self.fire_event(EventType.ADD_PROPERTY, key, value)

    def clear_property(self, key: str) -> None:
        self.fire_event(EventType.CLEAR_PROPERTY, key, None, before_update=True)
        self._clear_property_direct(key)
        self.fire_event(EventType.CLEAR_PROPERTY, key, None)

    def clear(self) -> None:
        """Remove all properties."""
        self.fire_event(EventType.CLEAR, before_update=True)
        for key in list(self.keys()):
            self._clear_property_direct(key)
        self.fire_event(EventType.CLEAR)

    def contains_key(self, key: str) -> bool:
        return self.get_property(key) is not None

    def keys(self, prefix: Optional[str] = None) -> List[str]:
        """
        Get all keys, or the keys starting with the given prefix.

        A key matches the prefix if it is equal to it or continues it with a
        delimiter or an attribute marker.
        """
        keys = list(self._iter_keys())
        if prefix is None:
            return keys
        return [key for key in keys if key == prefix
                or key.startswith(prefix + ".") or key.startswith(prefix + "[@")]

    def is_empty(self) -> bool:
        return not any(True for _ in self._iter_keys())

    def size(self) -> int:
        return len(self.keys())

    # Typed access

    def get(self, target_type: type, key: str, default: Any = None) -> Any:
        """
        Get the value of a key converted to the given type.

        Conversion follows pydantic's lax mode, so ``"42"`` converts to ``42``
        and ``"yes"`` to ``True``. For multi-valued keys the first value is used.
        Returns ``default`` if the key is not defined.

        Raises:
            ConversionError: If the value cannot be converted
        """
        value = self.get_property(key)
        if isinstance(value, list):
            value = value[0] if value else None
        if value is None:
            return default
        try:
            return _adapter(target_type).validate_python(value)
        except ValidationError as e:
            type_name = getattr(target_type, "__name__", str(target_type))
            raise ConversionError(
                f"Cannot convert value '{value}' of key '{key}' to {type_name}",
                key=key,
                target_type=type_name,
                cause=e
            ) from e

    def get_string(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.get_property(key)
        if isinstance(value, list):
            value = value[0] if value else None
        if value is None:
            return default
        if isinstance(value, bool):
            return str(value).lower()
        return str(value)

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        return self.get(int, key, default)

    def get_float(self, key: str, default: Optional[float] = None) -> Optional[float]:
        return self.get(float, key, default)

    def get_bool(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        return self.get(bool, key, default)

    def get_list(self, key: str, default: Optional[List[Any]] = None) -> List[Any]:
        """Get all values of a key as a list; an undefined key yields ``default`` or an empty list."""
        value = self.get_property(key)
        if value is None:
            return list(default) if default is not None else []
        if isinstance(value, list):
            return value
        return [value]

    def __contains__(self, key: str) -> bool:
        return self.contains_key(key)
