"""
Dotted path addresses into JSON documents.

An address like ``events.1.pages.0.list.5.parameters.0`` is a sequence of
keys; purely numeric segments are array indices, everything else is an
object field. Dots inside field names are escaped so the dotted form stays
reversible.
"""
from typing import Any, Iterable, Tuple, Union

Key = Union[str, int]

PATH_DOT_ESCAPE = "__DOT__"
PATH_DOT_ESCAPE_ESC = "__DOT_ESC__"


class _Missing:
    """Sentinel for a path that does not resolve."""

    def __repr__(self):
        return "MISSING"

    def __bool__(self):
        return False


MISSING = _Missing()


def _escape_key(key: str) -> str:
    escaped = key.replace(PATH_DOT_ESCAPE, PATH_DOT_ESCAPE_ESC)
    return escaped.replace('.', PATH_DOT_ESCAPE)


def _unescape_key(key: str) -> str:
    unescaped = key.replace(PATH_DOT_ESCAPE, '.')
    return unescaped.replace(PATH_DOT_ESCAPE_ESC, PATH_DOT_ESCAPE)


class Address:
    """Immutable location inside a document, reachable by successive indexing."""

    __slots__ = ("_keys",)

    def __init__(self, keys: Iterable[Key] = ()):
        self._keys: Tuple[Key, ...] = tuple(keys)

    @classmethod
    def parse(cls, path: str) -> "Address":
        return cls(cls.to_keys(path))

    @staticmethod
    def to_keys(path: str) -> Tuple[Key, ...]:
        """Split a dotted path; numeric segments become ints."""
        keys = []
        # Filter out empty strings to handle leading or double dots
        for segment in (s for s in path.split('.') if s):
            if segment.isdigit():
                keys.append(int(segment))
            else:
                keys.append(_unescape_key(segment))
        return tuple(keys)

    @property
    def keys(self) -> Tuple[Key, ...]:
        return self._keys

    def child(self, *keys: Key) -> "Address":
        return Address(self._keys + keys)

    def __str__(self):
        return '.'.join(str(k) if isinstance(k, int) else _escape_key(k) for k in self._keys)

    def __repr__(self):
        return f"Address('{self}')"

    def __eq__(self, other):
        if isinstance(other, Address):
            return self._keys == other._keys
        if isinstance(other, str):
            return str(self) == other
        return NotImplemented

    def __hash__(self):
        # Must agree with __eq__, which also matches the dotted string
        return hash(str(self))

    def __len__(self):
        return len(self._keys)

    def __iter__(self):
        return iter(self._keys)


def _step(ref: Any, key: Key) -> Any:
    """Index one level down, or MISSING."""
    if isinstance(ref, list):
        if not isinstance(key, int) or key >= len(ref):
            return MISSING
        return ref[key]
    if isinstance(ref, dict):
        # Object fields are always strings in JSON, even numeric-looking ones
        str_key = str(key)
        if str_key in ref:
            return ref[str_key]
        return MISSING
    return MISSING


def get_value(data: Any, address: Union[Address, str]) -> Any:
    """Return the value at ``address`` or MISSING if any segment is absent."""
    if isinstance(address, str):
        address = Address.parse(address)
    ref = data
    for key in address:
        ref = _step(ref, key)
        if ref is MISSING:
            return MISSING
    return ref


def set_value(data: Any, address: Union[Address, str], value: Any) -> bool:
    """
    Write ``value`` at ``address`` in place.

    Returns False without touching ``data`` when the parent container or the
    leaf slot does not exist; the write never creates new structure.
    """
    if isinstance(address, str):
        address = Address.parse(address)
    keys = address.keys
    if not keys:
        return False

    parent = get_value(data, Address(keys[:-1])) if len(keys) > 1 else data
    if parent is MISSING:
        return False

    last_key = keys[-1]
    if isinstance(parent, list):
        if not isinstance(last_key, int) or last_key >= len(parent):
            return False
        parent[last_key] = value
        return True
    if isinstance(parent, dict):
        str_key = str(last_key)
        if str_key not in parent:
            return False
        parent[str_key] = value
        return True
    return False
