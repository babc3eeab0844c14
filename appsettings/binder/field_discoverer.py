"""
appsettings/binder/field_discoverer.py

WHAT THIS FILE IS FOR
---------------------
This module answers one question for the binder:

    "Which members of this class can be loaded from a setting source,
     under which external key, and as which type?"

It produces an ordered list of FieldDescriptor objects from the static
shape of a class. It never looks at an instance and never reads values.

ELIGIBILITY RULE
----------------
A public member is a binding candidate if either:
- the class that declares it is decorated with @AppSetting(), or
- the member itself carries AppSetting metadata via typing.Annotated
  (for properties: on the getter's return annotation)

Members considered:
- annotated attributes (class body annotations), excluding ClassVar
- property objects
- never methods, never names starting with "_"

ORDER
-----
Base classes first (reverse MRO), then declaration order inside a class:
annotated attributes, then properties. A name redeclared by a subclass
keeps its original position and takes the subclass as declaring type.

WRITABILITY
-----------
A candidate is reported with writable=False when it cannot be assigned:
- property without a setter
- Final[...] annotation
- field of a frozen dataclass

The binder skips such fields with a warning; they are not errors.

UNRESOLVED ANNOTATIONS
----------------------
String annotations are evaluated one by one. A member whose annotation
cannot be evaluated (e.g. a type imported only under TYPE_CHECKING) is still
eligible when its class is marked or its annotation text carries an
AppSetting(...) call; it is reported with resolution_error set and the
binder records it as a failed field. Other members are unaffected.
"""

from __future__ import annotations

import ast
import collections.abc
import dataclasses
import inspect
import sys
import types
from dataclasses import dataclass, field
from typing import Annotated, Any, ClassVar, Final, Optional, Union, get_args, get_origin

import structlog

from appsettings.binder.markers import AppSetting, find_marker, get_class_marker

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FieldDescriptor:
    member_name: str
    external_key: str
    declared_type: Any
    is_connection_string_collection: bool
    writable: bool
    declaring_type: type
    # set when the member's string annotation could not be evaluated
    resolution_error: Optional[Exception] = field(default=None, compare=False)


@dataclass(frozen=True)
class _Unresolved:
    text: str
    error: Exception
    marker: Optional[AppSetting]


def _split_optional(annotation: Any) -> tuple[Any, bool]:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(args) < len(get_args(annotation)):
            return args[0], True
    return annotation, False


def _split_marker(annotation: Any) -> tuple[Any, Optional[AppSetting]]:
    """
    Separate AppSetting metadata from an annotation.

    Annotated[int, Ge(0), AppSetting(key="X")] -> (Annotated[int, Ge(0)], AppSetting(key="X"))
    Annotated[str, AppSetting()]               -> (str, AppSetting())
    Optional[Annotated[int, AppSetting()]]     -> (Optional[int], AppSetting())
    """
    inner, optional = _split_optional(annotation)
    if get_origin(inner) is not Annotated:
        return annotation, None

    base, *metadata = get_args(inner)
    marker = find_marker(tuple(metadata))
    rest = [m for m in metadata if not isinstance(m, AppSetting)]
    stripped = Annotated[(base, *rest)] if rest else base
    if optional:
        stripped = Optional[stripped]
    return stripped, marker


def _unwrap_qualifier(annotation: Any) -> tuple[Any, bool, bool]:
    """
    Returns (annotation, is_class_var, is_final).
    """
    if isinstance(annotation, _Unresolved):
        return annotation, annotation.text.startswith(("ClassVar", "typing.ClassVar")), False

    origin = get_origin(annotation)
    if annotation is ClassVar or origin is ClassVar:
        return annotation, True, False
    if annotation is Final:
        return Any, False, True
    if origin is Final:
        return get_args(annotation)[0], False, True
    return annotation, False, False


def is_connection_string_mapping(declared_type: Any) -> bool:
    """True only for Mapping[str, str] (typing or collections.abc spelling)."""
    if get_origin(declared_type) is not collections.abc.Mapping:
        return False
    return get_args(declared_type) == (str, str)


def _raw_annotations(obj: Any) -> dict[str, Any]:
    try:
        return dict(inspect.get_annotations(obj))
    except NameError:
        # lazily evaluated annotations (3.14+) naming an undefined type
        import annotationlib

        return dict(inspect.get_annotations(obj, format=annotationlib.Format.STRING))


def _marker_in_text(text: str, globalns: dict[str, Any], localns: Optional[dict[str, Any]]) -> Optional[AppSetting]:
    """
    Recover the AppSetting marker from an annotation string that does not
    evaluate as a whole, e.g. "Annotated[Missing, AppSetting(key='X')]".
    """
    if "AppSetting" not in text:
        return None

    try:
        tree = ast.parse(text, mode="eval")
    except SyntaxError:
        return AppSetting()

    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        try:
            value = eval(compile(ast.Expression(node), "<annotation>", "eval"), globalns, localns)
        except Exception:  # noqa: BLE001
            continue
        if isinstance(value, AppSetting):
            return value

    return AppSetting()


def _annotations(obj: Any) -> dict[str, Any]:
    """
    Own annotations of a class or function, each string annotation evaluated
    on its own. One unresolvable annotation (e.g. a name imported only under
    TYPE_CHECKING) yields an _Unresolved entry for that member only.
    """
    if isinstance(obj, type):
        module = sys.modules.get(obj.__module__)
        globalns = dict(vars(module)) if module is not None else {}
        localns: Optional[dict[str, Any]] = dict(vars(obj))
    else:
        globalns = getattr(obj, "__globals__", {})
        localns = None

    out: dict[str, Any] = {}
    for name, annotation in _raw_annotations(obj).items():
        if not isinstance(annotation, str):
            out[name] = annotation
            continue
        try:
            out[name] = eval(annotation, globalns, localns)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "settings_annotation_unresolved",
                target=getattr(obj, "__qualname__", repr(obj)),
                member=name,
                annotation=annotation,
                error=str(exc),
            )
            out[name] = _Unresolved(annotation, exc, _marker_in_text(annotation, globalns, localns))
    return out


def _class_is_frozen(cls: type) -> bool:
    if dataclasses.is_dataclass(cls):
        params = getattr(cls, "__dataclass_params__", None)
        if params is not None and params.frozen:
            return True

    return False


def _descriptor(
    name: str,
    annotation: Any,
    *,
    declaring_type: type,
    class_marked: bool,
    writable: bool,
) -> Optional[FieldDescriptor]:
    resolution_error: Optional[Exception] = None
    if isinstance(annotation, _Unresolved):
        declared_type, marker = annotation.text, annotation.marker
        resolution_error = annotation.error
    else:
        declared_type, marker = _split_marker(annotation)

    if not class_marked and marker is None:
        return None

    external_key = name
    if marker is not None and marker.key:
        external_key = marker.key

    is_conn = bool(
        marker is not None
        and marker.is_connection_string
        and is_connection_string_mapping(declared_type)
    )

    return FieldDescriptor(
        member_name=name,
        external_key=external_key,
        declared_type=declared_type,
        is_connection_string_collection=is_conn,
        writable=writable,
        declaring_type=declaring_type,
        resolution_error=resolution_error,
    )


def _record(found: dict[str, FieldDescriptor], name: str, desc: Optional[FieldDescriptor]) -> None:
    # a redeclaration in a subclass replaces the base entry in place, or
    # drops it when the redeclared member is not eligible
    if desc is None:
        found.pop(name, None)
    else:
        found[name] = desc


def discover_fields(cls: type) -> list[FieldDescriptor]:
    """
    Return the eligible binding fields of `cls` in discovery order.

    Pure function of the class shape; computed fresh on every call.
    """
    if not isinstance(cls, type):
        return []

    frozen = _class_is_frozen(cls)
    found: dict[str, FieldDescriptor] = {}

    for klass in reversed(cls.__mro__):
        if klass is object:
            continue

        class_marked = get_class_marker(klass) is not None
        namespace = klass.__dict__

        for name, annotation in _annotations(klass).items():
            if name.startswith("_"):
                continue
            declared = namespace.get(name)
            if isinstance(declared, property) or inspect.isroutine(declared):
                continue

            annotation, is_class_var, is_final = _unwrap_qualifier(annotation)
            if is_class_var:
                found.pop(name, None)
                continue

            desc = _descriptor(
                name,
                annotation,
                declaring_type=klass,
                class_marked=class_marked,
                writable=not (is_final or frozen),
            )
            _record(found, name, desc)

        for name, member in namespace.items():
            if name.startswith("_") or not isinstance(member, property):
                continue

            annotation = Any
            if member.fget is not None:
                annotation = _annotations(member.fget).get("return", Any)

            desc = _descriptor(
                name,
                annotation,
                declaring_type=klass,
                class_marked=class_marked,
                writable=member.fset is not None,
            )
            _record(found, name, desc)

    return list(found.values())
