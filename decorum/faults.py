"""
Decorum faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for the issues the
  decorator layer can surface. Codes are grouped by domain so logs and
  searches stay predictable.
- DecoratorException / DecoratorWarning: base types that carry message + options
  and know how to render themselves with rich.
- trigger(): central entry point to surface any fault (raise or warn).

Integration
- The decorator layer builds a fault with its context (receiver, attachment,
  replacement, ...) and calls trigger(fault, **context).
- Exceptions are raised; warnings are emitted through the warnings module and
  attributed to the first caller outside this package.
- Rendering can be styled by the host application through a __styles__ mapping
  in __main__, and codes can be relabeled through __codes__.
"""
import copy
import os.path
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

_PACKAGE = os.path.dirname(__file__)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the package (stable identifiers).

    grouping
    - receivers (211xx)
      • UNMARKABLE_RECEIVER
    - replacements (221xx, warnings)
      • NON_CALLABLE_REPLACEMENT
    """
    # --- receiver errors (21xxx) ---
    UNMARKABLE_RECEIVER      = 21101

    # --- warnings (22xxx) ---
    NON_CALLABLE_REPLACEMENT = 22101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, kind):
    main = __import__("__main__")
    options = fault.options

    styles = defaultdict(str, {
        "prog-name": "bold #E6E6F0",
        "code": "bold #00E5FF" if kind == "error" else "bold #FFB400",
        "error-title": "bold #FF4DA6",
        "warning-title": "bold #FFC2E0",
        "message": "#C8C8D0",
        "hint-arrow": "#9CE19C dim",
        "hint": "italic #9CE19C",
    } | getattr(main, "__styles__", {}))

    colorful = options.get("colorful", True)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    header = Text.assemble(
        "[ ",
        text("decorum", "prog-name"),
        " — ",
        text(options["code"].normalize(), "code"),
        " | ",
        text(options["title"].title(), f"{kind}-title"),
        " ]"
    )
    message = text(fault.message, "message")

    if not options.get("hint"):
        body = Group(message)
    else:
        body = Group(message, Text.assemble(text(" → ", "hint-arrow"), text(options["hint"], "hint")))

    if options.get("fancy", False):
        return Panel(body, title=header, title_align="left")
    return Group(header, body)


class DecoratorException(Exception):
    """
    Base class for errors raised by the decorator layer.

    Each concrete subclass declares its defaults (code, title, hint) in
    __fault__; construction-time options override them and add context.
    """
    __fault__ = MappingProxyType({})

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(type(self).__fault__ | options)

    def __rich__(self):
        return _render(self, "error")

    def __trigger__(self):
        raise self from None

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnmarkableReceiverError(DecoratorException, AttributeError):
    __fault__ = MappingProxyType({
        "code": FaultCode.UNMARKABLE_RECEIVER,
        "title": "unmarkable receiver",
        "hint": "decorated methods need weak-referenceable receivers (add '__weakref__' to __slots__)",
    })


class DecoratorWarning(ABC, Warning):
    """
    Base class for warnings emitted by the decorator layer.
    """
    __fault__ = MappingProxyType({})

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(type(self).__fault__ | options)

    def __rich__(self):
        return _render(self, "warning")

    def __trigger__(self):
        warnings.warn(self, stacklevel=2, skip_file_prefixes=(_PACKAGE,))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class NonCallableReplacementWarning(DecoratorWarning):
    __fault__ = MappingProxyType({
        "code": FaultCode.NON_CALLABLE_REPLACEMENT,
        "title": "non-callable replacement",
        "hint": "return a callable to replace the original, or None to keep it",
    })


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options) before
      triggering, so call sites can attach context without rebuilding the fault.
    - exceptions raise themselves; warnings go through warnings.warn.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "DecoratorException",
    "UnmarkableReceiverError",
    "DecoratorWarning",
    "NonCallableReplacementWarning",
    "trigger",
)
