"""
Immutable value objects compared by structure.
"""

import dataclasses
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, Iterator, Optional
from uuid import UUID

from ddd_kernel.domain.exceptions import ConstructionError
from ddd_kernel.domain.models.schema import check_attributes, declared_fields

_IMMUTABLE_SCALARS = (
    type(None), bool, int, float, complex, str, bytes,
    Decimal, Fraction, date, datetime, time, timedelta, UUID, Enum,
)


class FrozenDict(Mapping):
    """Read-only, hashable mapping. Equality ignores key order."""

    __slots__ = ("_data", "_hash")

    def __init__(self, data: Any = ()):
        self._data = dict(data)
        self._hash: Optional[int] = None

    def __getitem__(self, key: Any) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(frozenset(self._data.items()))
        return self._hash

    def __reduce__(self):
        return (type(self), (self._data,))

    def __repr__(self) -> str:
        return f"FrozenDict({self._data!r})"


def freeze(value: Any, path: str = "") -> Any:
    """Return a deeply immutable equivalent of ``value``.

    Raises ``ConstructionError`` for objects that cannot be made immutable.
    """
    if isinstance(value, (ValueObject,) + _IMMUTABLE_SCALARS):
        return value

    if isinstance(value, Mapping):
        return FrozenDict((key, freeze(item, f"{path}.{key}")) for key, item in value.items())

    if isinstance(value, tuple) and hasattr(value, "_fields"):
        return type(value)(*(freeze(item, f"{path}.{name}") for name, item in zip(value._fields, value)))

    if isinstance(value, (list, tuple)):
        return tuple(freeze(item, f"{path}[{index}]") for index, item in enumerate(value))

    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(item, f"{path}{{}}") for item in value)

    if isinstance(value, bytearray):
        return bytes(value)

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        if value.__dataclass_params__.frozen:
            return _freeze_dataclass(value, path)

    raise ConstructionError(
        f"Cannot freeze value of type {type(value).__name__} at '{path.lstrip('.')}'",
        field=path.lstrip(".") or None,
        value=value,
    )


def _freeze_dataclass(value: Any, path: str) -> Any:
    """Return ``value`` itself when its fields are already immutable, else a frozen rebuild."""
    changed = {}
    for field in dataclasses.fields(value):
        current = getattr(value, field.name)
        frozen = freeze(current, f"{path}.{field.name}")
        if frozen is not current:
            changed[field] = frozen

    if not changed:
        return value

    try:
        rebuilt = dataclasses.replace(value, **{f.name: v for f, v in changed.items() if f.init})
    except (TypeError, ValueError) as e:
        raise ConstructionError(
            f"Cannot freeze value of type {type(value).__name__} at '{path.lstrip('.')}': {e}",
            field=path.lstrip(".") or None,
            value=value,
        ) from e
    # Fields with init=False are not accepted by replace()
    for field, frozen in changed.items():
        if not field.init:
            object.__setattr__(rebuilt, field.name, frozen)
    return rebuilt


class ValueObject:
    """Base class for value objects.

    The attribute bundle is deep-frozen at construction: mappings become
    ``FrozenDict``, lists become tuples and sets become frozensets, so
    neither the caller's original bundle nor any reference obtained from the
    value object can change it afterwards. Frozen dataclasses holding
    mutable values are rebuilt with frozen fields. Two value objects of the
    same class are equal when their bundles are structurally equal.

        class Money(ValueObject):
            amount: Decimal
            currency: str = "EUR"

        Money(amount=Decimal("10")) == Money({"amount": Decimal("10"), "currency": "EUR"})
    """

    _RESERVED = frozenset({"props", "equals", "copy_with"})

    def __init__(self, attributes: Optional[Mapping[str, Any]] = None, **kwargs: Any):
        if kwargs:
            if attributes is not None and not isinstance(attributes, Mapping):
                raise ConstructionError(
                    f"{type(self).__name__} attributes must be a mapping, got {type(attributes).__name__}",
                    value=attributes,
                )
            attributes = {**(attributes or {}), **kwargs}

        bundle = check_attributes(type(self), attributes, reserved=self._RESERVED)
        for name in declared_fields(type(self)):
            if name not in bundle and hasattr(type(self), name):
                bundle[name] = getattr(type(self), name)

        frozen = FrozenDict((name, freeze(value, name)) for name, value in bundle.items())
        object.__setattr__(self, "_props", frozen)
        # Instance attributes shadow class-level defaults
        for name, value in frozen.items():
            object.__setattr__(self, name, value)

    @property
    def props(self) -> FrozenDict:
        return self._props

    def equals(self, other: Any) -> bool:
        return type(other) is type(self) and self._props == other._props

    def copy_with(self, **changes: Any) -> "ValueObject":
        """Return a new value object with ``changes`` applied."""
        return type(self)({**self._props, **changes})

    def __setattr__(self, name: str, value: Any) -> None:
        raise dataclasses.FrozenInstanceError(f"cannot assign to field '{name}'")

    def __delattr__(self, name: str) -> None:
        raise dataclasses.FrozenInstanceError(f"cannot delete field '{name}'")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueObject):
            return NotImplemented
        return self.equals(other)

    def __hash__(self) -> int:
        return hash((type(self), self._props))

    def __reduce__(self):
        return (type(self), (dict(self._props),))

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={value!r}" for name, value in self._props.items())
        return f"{type(self).__name__}({fields})"
