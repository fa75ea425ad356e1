"""Classification of the callables attached to futures."""

from __future__ import annotations

import enum
import inspect
import re
import typing
from typing import Any, Callable, Protocol, runtime_checkable

from expectedfutures.expected import Expected

_EXPECTED_NAME = re.compile(r"^(?:[\w.]+\.)?Expected(?:\[.*\])?$")

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class ParamKind(enum.Enum):
    """What a continuation expects to receive from the previous future."""

    #: Takes nothing; run only when the previous result completed.
    NONE = "none"
    #: Takes the plain value; run only when the previous result completed.
    VALUE = "value"
    #: Takes the Expected itself; always run.
    EXPECTED = "expected"


@runtime_checkable
class FutureLike(Protocol):
    """Anything that behaves as a future and can be unwrapped."""

    def then(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any: ...

    def is_ready(self) -> bool: ...

    def is_valid(self) -> bool: ...

    def get(self) -> Any: ...


def is_future_like(obj: object) -> bool:
    """True if ``obj`` is a future whose result should be unwrapped."""
    return isinstance(obj, FutureLike)


def _is_expected_annotation(annotation: Any) -> bool:
    if annotation is inspect.Parameter.empty:
        return False
    if isinstance(annotation, str):
        return bool(_EXPECTED_NAME.match(annotation.strip()))
    if isinstance(annotation, type) and issubclass(annotation, Expected):
        return True
    return typing.get_origin(annotation) is Expected


def _signature(func: Callable[..., Any]) -> inspect.Signature | None:
    if not callable(func):
        raise TypeError(f"{func!r} is not callable")
    try:
        return inspect.Signature.from_callable(func)
    except (TypeError, ValueError):
        return None


def param_kind(func: Callable[..., Any]) -> ParamKind:
    """Classify a continuation by the parameter it accepts.

    A callable with no positional parameter takes nothing. One whose first
    positional parameter is annotated as Expected takes the Expected;
    any other takes the plain value. Callables needing more than one
    argument are rejected with TypeError.
    """
    signature = _signature(func)
    if signature is None:
        return ParamKind.VALUE

    params = list(signature.parameters.values())
    required_keyword = [
        p.name
        for p in params
        if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
    ]
    if required_keyword:
        raise TypeError(
            "continuation function cannot require keyword arguments: "
            + ", ".join(required_keyword)
        )

    positional = [p for p in params if p.kind in _POSITIONAL]
    required = [p for p in positional if p.default is inspect.Parameter.empty]
    if len(required) > 1:
        raise TypeError(
            "continuation function parameter can either be Expected or a plain value"
        )

    if positional:
        first = positional[0]
        return ParamKind.EXPECTED if _is_expected_annotation(first.annotation) else ParamKind.VALUE
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return ParamKind.VALUE
    return ParamKind.NONE


def validate_initial(func: Callable[..., Any]) -> Callable[..., Any]:
    """Check that ``func`` can be called with no arguments and return it."""
    signature = _signature(func)
    if signature is None:
        return func
    required = [
        p.name
        for p in signature.parameters.values()
        if p.default is inspect.Parameter.empty
        and p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]
    if required:
        raise TypeError(
            "initial function cannot accept parameters: " + ", ".join(required)
        )
    return func