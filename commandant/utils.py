"""
Commandant utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the definitions, the command schema and the
  registry so that defaults, naming and read-only exposure behave the same
  everywhere.

Overview
- UnsetType / Unset
  • Singleton sentinel for “value not provided”, distinct from None.
  • Falsey, printable as "Unset", non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a default while preserving None/0/""/[].

- rename(callable, name) / @rename("name")
  • Give generated callables a stable __name__/__qualname__.

- mirror("attr")
  • Read-only property exposing self._attr; containers are handed out as fresh
    copies so callers cannot edit a schema through its accessors.

- pluralize(text)
  • English pluralizer used to derive group labels ("argument" → "arguments").

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
"""
import builtins
import functools
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Used where None is a legitimate user value (e.g. "no shorthand") and the
    API still needs to tell “not passed” apart from “passed as None”.

    Characteristics
    - Boolean-false: bool(Unset) is False.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a singleton per process.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
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

    Returns object unless it is Unset, in which case default is returned.
    Falsey values like None, 0, "" or [] are preserved as-is.

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
    - rename(callable, name) -> callable (updated in place)
    - rename(name) -> decorator

    Raises
    - TypeError on a non-callable target, a non-string name, a callable whose
      name cannot be updated, or a wrong number of arguments.
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
                # built-ins refuse attribute updates
                raise TypeError("rename() first argument must be a updatable callable") from None
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


def _immortalize(object):
    """
    Recursively copy container values.

    - Sequence (non-string) → new list, Mapping → new dict, Set → new set.
    - Anything else (definitions included) is returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    else:
        return coalesce(object)


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Container values are returned as fresh copies (see _immortalize), so
    `command.arguments.append(...)` never reaches the command itself.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def pluralize(text, /):
    """
    Best-effort English pluralizer for labels and messages.

    Only the last word of a phrase is pluralized; surrounding text and casing
    are preserved.

    Examples
    - pluralize("argument")        -> "arguments"
    - pluralize("option")          -> "options"
    - pluralize("command option")  -> "command options"
    - pluralize("entry")           -> "entries"
    - pluralize("Switch")          -> "Switches"
    """
    if not isinstance(text, str):
        raise TypeError("pluralize() argument must be a string")

    match = re.search(r'(\S+)(\s*)$', text)
    if not match:
        return text

    head = text[:match.start(1)]
    last = match.group(1)
    trail = match.group(2)
    lower = last.lower()

    if lower in {"series", "species", "information", "news"}:
        plural = lower
    elif lower.endswith(("s", "sh", "ch", "x", "z")):
        plural = lower + "es"
    elif lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        plural = lower[:-1] + "ies"
    else:
        plural = lower + "s"

    if last.isupper():
        plural = plural.upper()
    elif last[:1].isupper():
        plural = plural[:1].upper() + plural[1:]

    return head + plural + trail


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Singleton, falsey, distinct from None. Materialize with coalesce().
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pluralize",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
