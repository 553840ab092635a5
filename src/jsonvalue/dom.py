"""
DOM - Document Object Model for JSON values

Every JSON document is a tree of Values. Leaves are Null, Boolean, String and
Number; Array and Object own their children exclusively.

Key invariant: a Value has at most one owner. Inserting a Value that already
lives in a container is an error; clone() it first. Containers never adopt
themselves or their own ancestors, so the structure is always a tree.

Whole-tree operations (rendering, cloning, comparing, traversal, conversion)
walk the tree with an explicit stack, so nesting depth is bounded by memory
rather than by the interpreter's recursion limit.
"""

from __future__ import annotations

import math
import operator
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping, MutableMapping, MutableSequence
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

from .strings import escape_str, int_to_str


class OwnershipError(ValueError):
    """Raised when an insertion would give a Value two owners or form a cycle."""


class Kind(Enum):
    """Tag naming each concrete variant."""
    NULL = "null"
    BOOLEAN = "boolean"
    STRING = "string"
    NUMBER = "number"
    ARRAY = "array"
    OBJECT = "object"

    def make(self) -> Value:
        """Construct the default instance of this variant."""
        return _KIND_TYPES[self]()


class NumberType(Enum):
    INTEGER = "integer"
    FLOAT = "float"


@dataclass(eq=False)
class Value(ABC):
    """A node in the JSON value tree."""
    _owner: Value | None = field(default=None, init=False, repr=False, compare=False)

    kind: ClassVar[Kind]

    @abstractmethod
    def to_string(self) -> str:
        """Canonical JSON text for this value and everything it owns."""
        ...

    @abstractmethod
    def clone(self) -> Value:
        """Deep, detached copy. Shares no mutable state with self."""
        ...

    @abstractmethod
    def to_python(self) -> object:
        ...

    def create(self) -> Value:
        """New default instance of the same kind (not a copy)."""
        return type(self)()

    @property
    def owner(self) -> Value | None:
        """Container currently holding this value, None for a detached root."""
        return self._owner

    @property
    def is_owned(self) -> bool:
        return self._owner is not None

    def children(self) -> Iterator[Value]:
        """Directly owned values. Leaves own nothing."""
        return iter(())

    def depth_first(self) -> Iterator[Value]:
        """Traverse tree depth-first, yielding self then children."""
        stack: list[Value] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(list(node.children())))

    def breadth_first(self) -> Iterator[Value]:
        """Traverse tree breadth-first."""
        queue: list[Value] = [self]
        while queue:
            node = queue.pop(0)
            yield node
            queue.extend(node.children())

    def __copy__(self) -> Value:
        return self.clone()

    def __deepcopy__(self, memo: dict) -> Value:
        return self.clone()


@dataclass
class Null(Value):
    kind: ClassVar[Kind] = Kind.NULL

    def to_string(self) -> str:
        return "null"

    def clone(self) -> Null:
        return Null()

    def to_python(self) -> None:
        return None


@dataclass
class Boolean(Value):
    value: bool = False
    kind: ClassVar[Kind] = Kind.BOOLEAN

    def __setattr__(self, name, val):
        if name == "value" and not isinstance(val, bool):
            raise TypeError(f"Boolean value must be bool, got {type(val).__name__}")
        super().__setattr__(name, val)

    def to_string(self) -> str:
        return "true" if self.value else "false"

    def clone(self) -> Boolean:
        return Boolean(self.value)

    def to_python(self) -> bool:
        return self.value


@dataclass(order=True, unsafe_hash=True)
class String(Value):
    """
    A JSON string. Holds the raw text; escaping happens only in to_string().

    Compares and hashes by raw text so it can key an Object. str() gives the
    raw text back.
    """
    value: str = ""
    kind: ClassVar[Kind] = Kind.STRING

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError(f"String value must be str, got {type(self.value).__name__}")

    def __setattr__(self, name, val):
        # raw text is fixed once set; a String may already be keying a dict
        if name == "value" and "value" in self.__dict__:
            raise AttributeError("String value is read-only")
        super().__setattr__(name, val)

    def __str__(self) -> str:
        return self.value

    def to_string(self) -> str:
        return '"' + escape_str(self.value) + '"'

    def clone(self) -> String:
        return String(self.value)

    def to_python(self) -> str:
        return self.value


@dataclass(eq=False)
class Number(Value):
    """
    A JSON number: an int (INTEGER) or a finite float (FLOAT).

    The tag follows the stored value, including after reassignment. Integers
    render as plain digits of any length, floats as the shortest repr that
    reads back to the same float.
    """
    value: int | float = 0
    kind: ClassVar[Kind] = Kind.NUMBER

    def __setattr__(self, name, val):
        if name == "value":
            if isinstance(val, bool):
                raise TypeError("Number does not accept bool; use Boolean")
            if isinstance(val, float):
                if not math.isfinite(val):
                    raise ValueError(f"Number must be finite, got {val!r}")
            elif not isinstance(val, int):
                raise TypeError(f"Number value must be int or float, got {type(val).__name__}")
        super().__setattr__(name, val)

    @property
    def type(self) -> NumberType:
        return NumberType.INTEGER if isinstance(self.value, int) else NumberType.FLOAT

    @property
    def is_integer(self) -> bool:
        return self.type is NumberType.INTEGER

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Number):
            return NotImplemented
        return self.type is other.type and self.value == other.value

    __hash__ = None  # type: ignore[assignment]

    def __int__(self) -> int:
        return int(self.value)

    def __float__(self) -> float:
        return float(self.value)

    def to_string(self) -> str:
        if self.type is NumberType.INTEGER:
            return int_to_str(self.value)
        return repr(self.value)

    def clone(self) -> Number:
        return Number(self.value)

    def to_python(self) -> int | float:
        return self.value


class _Container(Value):
    """Shared ownership bookkeeping for Array and Object."""

    def _adopt(self, value: Value) -> Value:
        if not isinstance(value, Value):
            raise TypeError(f"Expected a Value, got {type(value).__name__}")
        if value._owner is not None:
            raise OwnershipError(
                f"{type(value).__name__} is already owned by a {type(value._owner).__name__}; clone() it first"
            )
        # only a container can be one of our ancestors
        node: Value | None = self if isinstance(value, _Container) else None
        while node is not None:
            if node is value:
                raise OwnershipError("Cannot insert a container into itself or its own descendant")
            node = node._owner
        value._owner = self
        return value

    def _adopt_all(self, values: Iterable[Value]) -> list[Value]:
        """Adopt every value or none of them."""
        adopted: list[Value] = []
        try:
            for value in values:
                adopted.append(self._adopt(value))
        except BaseException:
            for value in adopted:
                value._owner = None
            raise
        return adopted

    @staticmethod
    def _release(value: Value) -> None:
        value._owner = None

    def to_string(self) -> str:
        return _render(self)

    def clone(self) -> Value:
        return _clone_tree(self)

    def to_python(self) -> object:
        return _to_python(self)


class Array(_Container, MutableSequence):
    """Ordered sequence of exclusively owned Values."""

    kind: ClassVar[Kind] = Kind.ARRAY

    def __init__(self, values: Iterable[Value] = ()):
        super().__init__()
        self._items: list[Value] = []
        self._items = self._adopt_all(values)

    def __repr__(self) -> str:
        return f"Array({self._items!r})"

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> Value:
        if isinstance(index, slice):
            raise TypeError("Array does not support slicing")
        return self._items[index]

    def __setitem__(self, index: int, value: Value) -> None:
        if isinstance(index, slice):
            raise TypeError("Array does not support slicing")
        old = self._items[index]
        if value is old:
            return
        self._adopt(value)
        self._items[index] = value
        self._release(old)

    def __delitem__(self, index: int) -> None:
        if isinstance(index, slice):
            raise TypeError("Array does not support slicing")
        old = self._items[index]
        del self._items[index]
        self._release(old)

    def __iter__(self) -> Iterator[Value]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Array):
            return NotImplemented
        return _equal(self, other)

    __hash__ = None  # type: ignore[assignment]

    def insert(self, index: int, value: Value) -> None:
        index = operator.index(index)
        self._adopt(value)
        self._items.insert(index, value)

    def extend(self, values: Iterable[Value]) -> None:
        if values is self:
            values = [item.clone() for item in self._items]
        self._items.extend(self._adopt_all(values))

    def clear(self) -> None:
        items, self._items = self._items, []
        for item in items:
            self._release(item)

    def reverse(self) -> None:
        self._items.reverse()

    def children(self) -> Iterator[Value]:
        return iter(self._items)

    def assign(self, other: Array) -> Array:
        """Replace contents with a deep copy of other. Safe when other is self."""
        if not isinstance(other, Array):
            raise TypeError(f"Cannot assign {type(other).__name__} to Array")
        fresh = [item.clone() for item in other._items]
        old, self._items = self._items, fresh
        for item in fresh:
            item._owner = self
        for item in old:
            self._release(item)
        return self


def _key(key: str | String) -> String:
    if isinstance(key, String):
        # keys are held by value, never shared with the caller
        return String(key.value)
    if isinstance(key, str):
        return String(key)
    raise TypeError(f"Object keys must be str or String, got {type(key).__name__}")


class Object(_Container, MutableMapping):
    """Mapping from String key to exclusively owned Value, iterated in key order."""

    kind: ClassVar[Kind] = Kind.OBJECT

    def __init__(self, entries: Mapping | Iterable[tuple[str | String, Value]] = ()):
        super().__init__()
        self._entries: dict[String, Value] = {}
        pairs = entries.items() if isinstance(entries, Mapping) else entries
        staged: dict[String, Value] = {}
        for key, value in pairs:
            staged[_key(key)] = value
        # a repeated key keeps its last value; earlier ones are never adopted
        self._entries = dict(zip(staged, self._adopt_all(staged.values())))

    def __repr__(self) -> str:
        return f"Object({dict(self.items())!r})"

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, key: str | String) -> Value:
        return self._entries[_key(key)]

    def __setitem__(self, key: str | String, value: Value) -> None:
        k = _key(key)
        old = self._entries.get(k)
        if value is old:
            return
        self._adopt(value)
        self._entries[k] = value
        if old is not None:
            self._release(old)

    def __delitem__(self, key: str | String) -> None:
        old = self._entries.pop(_key(key))
        self._release(old)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, String)):
            return False
        return _key(key) in self._entries

    def __iter__(self) -> Iterator[String]:
        return iter(sorted(self._entries))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Object):
            return NotImplemented
        return _equal(self, other)

    __hash__ = None  # type: ignore[assignment]

    def clear(self) -> None:
        entries, self._entries = self._entries, {}
        for value in entries.values():
            self._release(value)

    def children(self) -> Iterator[Value]:
        return (self._entries[key] for key in sorted(self._entries))

    def assign(self, other: Object) -> Object:
        """Replace contents with a deep copy of other. Safe when other is self."""
        if not isinstance(other, Object):
            raise TypeError(f"Cannot assign {type(other).__name__} to Object")
        fresh = {String(key.value): value.clone() for key, value in other._entries.items()}
        old, self._entries = self._entries, fresh
        for value in fresh.values():
            value._owner = self
        for value in old.values():
            self._release(value)
        return self


_KIND_TYPES: dict[Kind, type[Value]] = {
    Kind.NULL: Null,
    Kind.BOOLEAN: Boolean,
    Kind.STRING: String,
    Kind.NUMBER: Number,
    Kind.ARRAY: Array,
    Kind.OBJECT: Object,
}


def _render(root: Value) -> str:
    """Canonical text of a tree. The stack holds pending Values and literal text."""
    out: list[str] = []
    stack: list[Value | str] = [root]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            out.append(item)
        elif isinstance(item, Array):
            if not item._items:
                out.append("[]")
                continue
            parts: list[Value | str] = ["["]
            for i, child in enumerate(item._items):
                if i:
                    parts.append(", ")
                parts.append(child)
            parts.append("]")
            stack.extend(reversed(parts))
        elif isinstance(item, Object):
            if not item._entries:
                out.append("{}")
                continue
            parts = ["{"]
            for i, key in enumerate(sorted(item._entries)):
                if i:
                    parts.append(", ")
                parts.append(key.to_string() + ":")
                parts.append(item._entries[key])
            parts.append("}")
            stack.extend(reversed(parts))
        else:
            out.append(item.to_string())
    return "".join(out)


def _shell(value: Value) -> Value:
    """Empty container of the same kind, or a full copy of a leaf."""
    if isinstance(value, _Container):
        return type(value)()
    return value.clone()


def _clone_tree(root: Value) -> Value:
    """Deep copy of a tree; containers are created empty and filled level by level."""
    top = _shell(root)
    stack: list[tuple[Value, Value]] = [(root, top)]
    while stack:
        source, target = stack.pop()
        if isinstance(source, Array):
            for child in source._items:
                dup = _shell(child)
                target._items.append(target._adopt(dup))
                if isinstance(child, _Container):
                    stack.append((child, dup))
        elif isinstance(source, Object):
            for key, child in source._entries.items():
                dup = _shell(child)
                target._entries[String(key.value)] = target._adopt(dup)
                if isinstance(child, _Container):
                    stack.append((child, dup))
    return top


def _equal(a: Value, b: Value) -> bool:
    """Structural equality of two trees."""
    stack: list[tuple[Value, Value]] = [(a, b)]
    while stack:
        x, y = stack.pop()
        if type(x) is not type(y):
            return False
        if isinstance(x, Array):
            if len(x._items) != len(y._items):
                return False
            stack.extend(zip(x._items, y._items))
        elif isinstance(x, Object):
            if x._entries.keys() != y._entries.keys():
                return False
            stack.extend((value, y._entries[key]) for key, value in x._entries.items())
        elif x != y:
            return False
    return True


def _to_python(root: Value) -> object:
    """Plain lists, dicts and scalars for a tree. Dicts come out in key order."""
    def blank(value: Value) -> object:
        if isinstance(value, Array):
            return []
        if isinstance(value, Object):
            return {}
        return value.to_python()

    top = blank(root)
    stack: list[tuple[Value, object]] = [(root, top)]
    while stack:
        source, target = stack.pop()
        if isinstance(source, Array):
            for child in source._items:
                item = blank(child)
                target.append(item)
                if isinstance(child, _Container):
                    stack.append((child, item))
        elif isinstance(source, Object):
            for key in sorted(source._entries):
                child = source._entries[key]
                item = blank(child)
                target[key.value] = item
                if isinstance(child, _Container):
                    stack.append((child, item))
    return top


def clone(value: Value) -> Value:
    """Deep-copy any Value through the common interface."""
    return value.clone()


def _from_python_node(obj: object) -> Value:
    if isinstance(obj, Value):
        return obj.clone() if obj.is_owned else obj
    if obj is None:
        return Null()
    if isinstance(obj, bool):
        return Boolean(obj)
    if isinstance(obj, (int, float)):
        return Number(obj)
    if isinstance(obj, str):
        return String(obj)
    if isinstance(obj, Mapping):
        return Object()
    if isinstance(obj, (list, tuple)):
        return Array()
    raise TypeError(f"Cannot convert {type(obj).__name__} to a JSON value")


def from_python(obj: object) -> Value:
    """Build a detached Value tree from plain Python data."""
    top = _from_python_node(obj)
    stack: list[tuple[object, Value]] = []
    if not isinstance(obj, Value) and isinstance(top, _Container):
        stack.append((obj, top))
    while stack:
        source, target = stack.pop()
        items = source.items() if isinstance(source, Mapping) else enumerate(source)
        for key, item in items:
            child = _from_python_node(item)
            if isinstance(target, Object):
                target[key] = child
            else:
                target.append(child)
            if not isinstance(item, Value) and isinstance(child, _Container):
                stack.append((item, child))
    return top
