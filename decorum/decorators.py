"""
Decorum decorator layer: write the wrapping logic once, apply it five ways.

What this module provides
- decorator(callback): factory returning a Decorator built around a wrapping callback
  with the signature callback(invoke, params) -> replacement | None.
- Decorator: the dispatcher. It can be applied as
    1. @dec                    (bare annotation on a method)
    2. @dec()                  (annotation with call, no params)
    3. @dec(p1, p2)            (parameterized annotation)
    4. dec(func, p1, p2)       (direct wrap of a plain function)
    5. dec(p1, p2)(func)       (curried wrap)
  Shapes 1-3 on a method install an Attachment; shapes 4-5 call the callback right away.
- Attachment: descriptor installed in place of a decorated method. It runs the
  callback once per receiver and memoizes the replacement for that receiver.
- AttachMode: the explicit attachment modes behind the shapes, reachable without
  any argument sniffing through Decorator.wrap/attach/curry.

Quick start
    from decorum import decorator

    @decorator
    def plus_one(invoke, params):
        return lambda *args, **kwargs: invoke(*args, **kwargs) + 1

    class Counter:
        @plus_one
        def five(self):
            return 5

    Counter().five()            # 6
    plus_one(lambda: 1)()       # 2

Per-receiver memoization
- Each Attachment owns a cache mapping a receiver marker to the replacement built
  for that receiver. The marker is a monotonic serial kept in a side table keyed by
  id(receiver), assigned the first time it calls a decorated method; it never changes
  afterwards and never shows up in the receiver's own state.
- The callback therefore sees one `invoke` per receiver and can keep per-instance
  state (counters, caches, rate limiters) in its closure.
- Entries are never evicted: a cached replacement keeps its receiver alive for as
  long as the attachment site exists.

Ambiguities
- A function is treated as a method when it is defined directly in a class body
  (its __qualname__ names an owner other than "<locals>"). dec(Class.method) therefore
  attaches; use dec.wrap(Class.method) to wrap it as a plain function.
- @dec(func_param) wraps func_param right away since the first argument is callable;
  use @dec.attach(func_param) or dec.curry(func_param) to pass callables as params.
"""
import functools
import inspect
import itertools
import operator
import weakref
from enum import Enum
from types import MethodType

from .faults import *
from .utils import *

_markers = {}

_serials = itertools.count(1)


class AttachMode(Enum):
    """
    Explicit attachment modes.

    - WRAP: call the callback now on a plain function (dec.wrap(func, *params)).
    - ATTACH: install a memoizing Attachment on a method (dec.attach(*params)(method)).
    - CURRY: capture params now, wrap a plain function later (dec.curry(*params)(func)).
    """
    WRAP = "wrap"
    ATTACH = "attach"
    CURRY = "curry"


def _is_method(x):
    # plain function defined directly in a class body: "Owner.name" or "f.<locals>.Owner.name"
    if isinstance(x, Attachment):
        return True
    if not inspect.isfunction(x):
        return False
    *owners, _ = x.__qualname__.split(".")
    return bool(owners) and owners[-1] != "<locals>"


def _mark(receiver):
    """
    Return the identity marker of `receiver`, assigning one on first use.

    Markers live in a module-level side table keyed by id(receiver), so the
    receiver's own state (vars(), pickling, equality) is left untouched. A
    weakref.finalize hook drops the entry when the receiver dies, so a later
    object reusing the same id starts unmarked. Copies are distinct objects and
    get their own marker.
    """
    key = id(receiver)
    try:
        return _markers[key]
    except KeyError:
        pass
    try:
        weakref.finalize(receiver, _markers.pop, key, None)
    except TypeError:
        trigger(
            UnmarkableReceiverError(
                f"cannot mark receiver of type {type(receiver).__qualname__!r} "
                f"(no weak reference support)"
            ),
            receiver=receiver,
        )
    marker = _markers[key] = next(_serials)
    return marker


def _replace(callback, invoke, params, **context):
    """
    Run the callback once and resolve its result.

    - None → `invoke` (keep the original).
    - callable → the replacement.
    - anything else → returned as-is after a NonCallableReplacementWarning.
    """
    replacement = callback(invoke, params)
    if replacement is None:
        return invoke
    if not callable(replacement):
        trigger(
            NonCallableReplacementWarning(
                f"callback {getattr(callback, '__qualname__', callback)!r} returned "
                f"a non-callable {type(replacement).__qualname__!r} replacement"
            ),
            replacement=replacement,
            **context,
        )
    return replacement


class Attachment:
    """
    Memoizing method wrapper installed at one attachment site.

    Descriptor behavior
    - Owner.method → the Attachment itself (inspectable: callback, function, params, cache).
    - instance.method → bound method; calling it runs the memoized-wrap algorithm:
        a. mark the receiver on first use,
        b. look the marker up in this site's cache,
        c. on a miss, call callback(invoke, params) once with `invoke` bound to the receiver
           and store the replacement (or `invoke` itself when the callback returns None),
        d. call the cached entry with the call-time arguments.
    - __set_name__ records the owning class and attribute name.

    The original function's metadata (__name__, __doc__, __wrapped__, ...) is copied
    onto the attachment so introspection keeps working.
    """
    callback = mirror("callback")
    function = mirror("function")
    params = mirror("params")
    cache = mirror("cache")
    owner = mirror("owner")
    name = mirror("name")

    def __init__(self, callback, function, params=(), /):
        functools.update_wrapper(self, function, updated=())
        self._callback = callback
        self._function = function
        self._params = tuple(params)
        self._cache = {}
        self._owner = Unset
        self._name = Unset

    def __set_name__(self, owner, name):
        self._owner = owner
        self._name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return MethodType(self, instance)

    def __call__(self, receiver, /, *args, **kwargs):
        key = _mark(receiver)
        try:
            replacement = self._cache[key]
        except KeyError:
            replacement = self._cache[key] = self._materialize(receiver)
        return replacement(*args, **kwargs)

    def _materialize(self, receiver):
        function = self._function

        @functools.wraps(function, updated=())
        def invoke(*args, **kwargs):
            return function(receiver, *args, **kwargs)

        return _replace(self._callback, invoke, self._params, attachment=self, receiver=receiver)

    def __repr__(self):
        return f"attachment({
            ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
        })"

    def __rich_repr__(self):
        yield "function", self._function.__qualname__
        yield "params", self._params
        yield "receivers", len(self._cache)


class Decorator:
    """
    Dispatcher built around one wrapping callback.

    Calling the decorator sniffs the shape of its arguments (see classify) and routes
    to one of the explicit entry points:
    - wrap(func, *params)   → callback(func, params), or func when the callback returns None.
    - attach(*params)       → decorator installing an Attachment on a method.
    - curry(*params)        → decorator applying wrap(func, *params) later.

    The callback is never validated; a non-callable one fails when first invoked.
    """

    callback = mirror("callback")

    def __init__(self, callback, /):
        functools.update_wrapper(self, callback, updated=())
        self._callback = callback

    @staticmethod
    def classify(*args):
        """
        Classify an argument list into the AttachMode it requests.

        Priority
        1. ATTACH: a single method-shaped function (bare @dec on a method).
        2. WRAP: the first argument is callable (dec(func, *params)).
        3. CURRY: anything else, including no arguments (@dec(), dec(*params)).
        """
        if len(args) == 1 and _is_method(args[0]):
            return AttachMode.ATTACH
        if args and callable(args[0]):
            return AttachMode.WRAP
        return AttachMode.CURRY

    def __call__(self, /, *args):
        match self.classify(*args):
            case AttachMode.ATTACH:
                return self.attach()(args[0])
            case AttachMode.WRAP:
                return self.wrap(*args)
            case AttachMode.CURRY:
                return self._deferred(args)

    def wrap(self, function, /, *params):
        return _replace(self._callback, function, params, decorator=self)

    def attach(self, /, *params):
        @rename("attach")
        def wrapper(method, /):
            return Attachment(self._callback, method, params)
        return wrapper

    def curry(self, /, *params):
        @rename("curry")
        def wrapper(function, /):
            return self.wrap(function, *params)
        return wrapper

    def _deferred(self, params):
        # @dec(*params) on a method attaches; dec(*params)(func) wraps
        @rename(coalesce(getattr(self, "__name__", Unset), "decorator"))
        def wrapper(target, /):
            if _is_method(target):
                return self.attach(*params)(target)
            return self.wrap(target, *params)
        return wrapper

    def __repr__(self):
        return f"decorator({
            ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
        })"

    def __rich_repr__(self):
        yield "callback", getattr(self._callback, "__qualname__", self._callback)


def decorator(callback, /):
    """
    Create a Decorator from a wrapping callback.

    Parameters
    - callback: Callable[[invoke, params], replacement | None]
      • invoke: the original function (function shapes) or a function calling the
        original method with the receiver bound (method shapes).
      • params: tuple of the extra arguments given at attachment time.
      • returns a replacement callable, or None to keep `invoke` as is.

    Returns
    - Decorator usable in all five shapes (see the module docstring).

    Notes
    - No validation happens here; a non-callable callback surfaces as a TypeError
      the first time the decorator tries to call it.
    - dec(func) calls the callback right away, except when func was defined directly
      in a class body (e.g. dec(Class.method)): that is read as a bare method annotation
      and returns an Attachment without calling the callback. Use dec.wrap(Class.method)
      to wrap such a function immediately.
    """
    return Decorator(callback)


__all__ = (
    "AttachMode",
    "Attachment",
    "Decorator",
    "decorator",
)
