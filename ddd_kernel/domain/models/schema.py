"""
Declared attribute schemas.

A class declares the attributes it accepts through class-level annotations.
Annotations on private names (leading underscore) and ``ClassVar``
annotations are not part of the schema. A class without any declared field
accepts any attribute bundle.
"""

import inspect
from collections.abc import Mapping
from typing import Any, ClassVar, Dict, Iterable, Optional, get_origin

from ddd_kernel.domain.exceptions import ConstructionError


def _is_class_var(annotation: Any) -> bool:
    if annotation is ClassVar or get_origin(annotation) is ClassVar:
        return True
    # String annotations (``from __future__ import annotations``)
    return isinstance(annotation, str) and annotation.replace("typing.", "").startswith("ClassVar")


def declared_fields(cls: type) -> Dict[str, bool]:
    """Return the declared fields of ``cls`` mapped to whether they have a default.

    Base classes come first; a subclass re-declaring a field keeps the
    base position.
    """
    fields: Dict[str, bool] = {}
    for klass in reversed(cls.__mro__):
        annotations = inspect.get_annotations(klass)
        for name, annotation in annotations.items():
            if name.startswith("_") or _is_class_var(annotation):
                continue
            fields[name] = name in klass.__dict__ or fields.get(name, False)
    return fields


def check_attributes(
    cls: type,
    attributes: Optional[Mapping],
    reserved: Iterable[str] = (),
) -> Dict[str, Any]:
    """Validate an attribute bundle against the fields ``cls`` declares.

    Returns a plain dict copy of the bundle. Raises ``ConstructionError``
    when the bundle is not a mapping, uses a reserved, private or undeclared name,
    or omits a required field.
    """
    if attributes is None:
        attributes = {}
    if not isinstance(attributes, Mapping):
        raise ConstructionError(
            f"{cls.__name__} attributes must be a mapping, got {type(attributes).__name__}",
            value=attributes,
        )

    bundle = dict(attributes)
    for name in bundle:
        if not isinstance(name, str) or not name.isidentifier():
            raise ConstructionError(f"Invalid attribute name for {cls.__name__}: {name!r}", field=str(name))
        if name in reserved or name.startswith("_"):
            raise ConstructionError(f"Attribute name is reserved on {cls.__name__}: {name}", field=name)

    fields = declared_fields(cls)
    if not fields:
        return bundle

    unknown = [name for name in bundle if name not in fields]
    if unknown:
        raise ConstructionError(
            f"Unknown attributes for {cls.__name__}: {', '.join(sorted(unknown))}",
            field=unknown[0],
            value=bundle[unknown[0]],
        )

    missing = [name for name, has_default in fields.items() if not has_default and name not in bundle]
    if missing:
        raise ConstructionError(
            f"Missing required attributes for {cls.__name__}: {', '.join(missing)}",
            field=missing[0],
        )

    return bundle
