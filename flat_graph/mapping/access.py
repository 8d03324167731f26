"""Attribute resolution helpers.

Works against plain classes, dataclasses and Pydantic models. Everything
here runs at extraction time or once per (parent, child) pair, never per
row.
"""

from __future__ import annotations

import inspect
import re
import types
import typing
from typing import Any, Union

from pydantic import BaseModel


def _is_pydantic_model(cls: type) -> bool:
    """Check if a class is a Pydantic BaseModel."""
    return isinstance(cls, type) and issubclass(cls, BaseModel)


def _own_annotations(cls: type) -> dict[str, Any]:
    """Annotations declared directly on cls, unevaluated."""
    try:
        return inspect.get_annotations(cls)
    except (TypeError, NameError):
        return {}


def _hierarchy(cls: type) -> list[type]:
    """cls followed by its ancestors, excluding object and pydantic internals."""
    return [
        klass
        for klass in cls.__mro__
        if klass is not object and klass.__module__.split(".")[0] != "pydantic"
    ]


def resolve_attribute(cls: type, name: str) -> type | None:
    """Find the class in cls's ancestor chain that declares attribute ``name``.

    An attribute counts as declared when it is annotated, listed in
    ``__slots__``, assigned as a non-callable class attribute, is a
    Pydantic model field, or is set on the instance by a parameterless
    ``__init__``.

    Returns:
        The declaring class, or None when nothing in the chain declares it.
    """
    if _is_pydantic_model(cls) and name in cls.model_fields:
        return cls

    for klass in _hierarchy(cls):
        if name in _own_annotations(klass):
            return klass
        slots = vars(klass).get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        if name in slots:
            return klass
        if name in vars(klass) and not callable(vars(klass)[name]):
            return klass

    try:
        instance = new_instance(cls)
    except Exception:
        # not constructible without arguments; the engine reports that at build time
        return None
    if name in getattr(instance, "__dict__", {}):
        return cls
    return None


def new_instance(cls: type) -> Any:
    """Construct cls without arguments.

    Pydantic models are built with ``model_construct`` so required fields
    do not fail validation before the mapper has populated them.
    """
    if _is_pydantic_model(cls):
        return cls.model_construct()
    return cls()


# --- Collection resolution ---


def _is_list_of(hint: Any, element: type) -> bool:
    """True for list[element], List[element] and their Optional forms."""
    origin = typing.get_origin(hint)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        return len(members) == 1 and _is_list_of(members[0], element)
    if origin is typing.Annotated:
        return _is_list_of(typing.get_args(hint)[0], element)
    return origin is list and typing.get_args(hint) == (element,)


def _string_is_list_of(annotation: str, element: type) -> bool:
    """Fallback matcher for annotations that cannot be evaluated."""
    name = re.escape(element.__name__)
    pattern = (
        rf"^(typing\.)?(Optional\[)?(list|List)\[([\w.]+\.)?{name}\]\]?"
        r"(\s*\|\s*None)?$"
    )
    return re.match(pattern, annotation.replace(" ", "")) is not None


def _type_hints(cls: type, element: type) -> dict[str, Any] | None:
    try:
        return typing.get_type_hints(
            cls,
            localns={element.__name__: element, cls.__name__: cls},
            include_extras=True,
        )
    except (NameError, TypeError, AttributeError):
        return None


def resolve_collection_attribute(parent_cls: type, child_cls: type) -> str | None:
    """Find the ``list[child_cls]`` attribute on parent_cls or its ancestors.

    The declared element type must be exactly child_cls.

    Returns:
        The attribute name, or None when the parent has no such collection.
    """
    hints = _type_hints(parent_cls, child_cls)

    for klass in _hierarchy(parent_cls):
        for name, annotation in _own_annotations(klass).items():
            if hints is not None and name in hints:
                if _is_list_of(hints[name], child_cls):
                    return name
            elif isinstance(annotation, str):
                if _string_is_list_of(annotation, child_cls):
                    return name
            elif _is_list_of(annotation, child_cls):
                return name
    return None
