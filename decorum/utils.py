"""
Decorum utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the decorator and fault layers.
- Public-but-internal leaning: importable and stable, designed primarily
  to support decorum.decorators and decorum.faults.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/().

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated closures for clean tracebacks and reprs.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) through
    immutable views (tuple, MappingProxyType, frozenset).

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
    >>> @rename("attach")
    ... def wrapper(method): ...
    ...
    >>> wrapper.__qualname__
    'attach'
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    None is a meaningful value in this package (a wrapping callback returning
    None means “keep the original”), so a distinct marker is needed to say
    “nothing was given”. A single instance, Unset, is exposed for that purpose.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable: this type is sealed.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when UnsetType appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns `object` unless it is Unset, in which case `default` is returned.
    Falsey values like None, 0, "" or () are preserved as-is.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - Function form: rename(callable, name) -> callable
      Immediately updates the callable’s __name__ and __qualname__ in place.
    - Decorator form: rename(name) -> (decorator)
      Returns a decorator that assigns the given name to a future callable.

    Notes
    - Only metadata changes; behavior is untouched.
    - Some built-in callables are not updatable and raise TypeError.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be an updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _freeze(object):
    """
    Shallow read-only view of a container; other objects pass through.

    - Sequence (non-string) → tuple
    - Mapping               → MappingProxyType (live, read-only)
    - Set                   → frozenset
    """
    if isinstance(object, Sequence) and not isinstance(object, (str, bytes, bytearray)):
        return tuple(object)
    elif isinstance(object, Mapping):
        return MappingProxyType(object)
    elif isinstance(object, Set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads "_{name}" from the instance and returns a
    read-only view for container types, so public attributes cannot be used
    to mutate internal state. Mappings are exposed live: later additions to
    the backing dict are visible through the view.

    Example
    - Given self._cache, declare cache = mirror("cache") to expose it safely.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Notes
- Singleton: there is only one Unset instance.
- Distinct from None: identity checks must not treat it as None.
- Typical pattern: value = coalesce(user_value, default).
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
