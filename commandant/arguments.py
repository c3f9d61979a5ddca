r"""
Commandant argument and option definitions.

Overview
- ValueType: the value kinds an option may accept ("string", "integer",
  "float"). An option without a value type is a boolean presence flag.
- Argument: one positional slot (name, descr, required). Slots are filled in
  declaration order, whatever the token looks like.
- Option: one flag/value slot (name, shorthand, descr, required, accepts),
  plus the token-matching predicate and the value validation/coercion used by
  the parser.

Accessors
- Reading goes through read-only properties (name, descr, required, ...).
- Writing goes through explicitly named setters (set_name, set_descr, ...)
  that validate and return the definition itself, so handles chain:

    >>> Option("threads", "t").set_accepts("integer").set_required()
    option(name='threads', shorthand='t', descr=None, required=True, accepts=<ValueType.INTEGER: 'integer'>, group='options')

Validation
- argument names: any string.
- option names/shorthands: non-empty strings without whitespace (a token never
  holds whitespace, so such a name could never match).
- descr: a string or rich Text, kept as given, or None to clear it.
- required: must be a bool.
- accepts: a ValueType, one of its string values, or None; anything else is an
  InvalidOptionTypeError.

Number parsing
- integer/float options read tokens permissively: leading whitespace is
  skipped and the longest numeric prefix wins ("42abc" reads as 42, ".5" as
  0.5, "-Infinity" as -inf). A token without a numeric prefix reads as NaN.
"""
import functools
import math
import operator
import re
from enum import StrEnum

from rich.text import Text

from .faults import InvalidOptionTypeError
from .utils import *


_NUMERIC = re.compile(r"[+-]?(?:Infinity|(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)", re.ASCII)


def _parsefloat(token, /):
    """
    permissive float parse: longest numeric prefix after leading whitespace,
    NaN when there is none.
    """
    if not (match := _NUMERIC.match(token.lstrip())):
        return math.nan
    return float(match.group().replace("Infinity", "inf"))


class ValueType(StrEnum):
    """
    Value kinds accepted by value-bearing options.
    """
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"


class ArgumentType(type):
    """
    Metaclass wiring introspection into definition classes.

    - __typename__ is derived from the class name ("Argument" → "argument").
    - every name in __introspectable__ becomes a read-only property mirroring
      the private "_<name>" field.
    - __repr__/__rich_repr__ list the introspectable fields in order.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_name(cls, name, /, field="name", *, token=True):
    """
    Internal: validate a definition name or shorthand.

    Raises
    - TypeError: when the value is not a string.
    - ValueError: when it is empty or contains whitespace, for names that
      must match an input token.
    """
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    elif not token:
        return name
    elif not name:
        raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
    elif re.search(r"\s", name):
        raise ValueError(f"{cls.__typename__} {field!r} cannot contain whitespace")
    return name


def _sanitize_descr(cls, descr, /):
    """
    Internal: Unset/None become None; strings and rich Text are kept as given.
    """
    if not isinstance(descr, str | Text | Unset | None):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    return coalesce(descr)


def _sanitize_required(cls, required, /):
    if not isinstance(required, bool):
        raise TypeError(f"{cls.__typename__} 'required' must be a boolean")
    return required


def _sanitize_accepts(cls, accepts, /):
    """
    Internal: normalize an accepted value type into a ValueType (or None).
    """
    if accepts is None or accepts is Unset:
        return None
    try:
        return ValueType(accepts)
    except (ValueError, TypeError):
        raise InvalidOptionTypeError(
            f"invalid {cls.__typename__} type {accepts!r} (expected one of %s)" % ", ".join(map(repr, ValueType))
        ) from None


class Argument(metaclass=ArgumentType):
    """
    Positional argument definition.

    An Argument names one positional slot. The parser assigns the n-th
    non-option token to the n-th declared Argument; tokens beyond the last
    slot become overflow (or a fault in strict mode).
    """

    __introspectable__ = (
        "name",
        "descr",
        "required",
        "group",
    )

    def __init__(self, name, descr=Unset, required=False):
        self._group = pluralize(type(self).__typename__)
        self.set_name(name)
        self.set_descr(descr)
        self.set_required(required)

    def set_name(self, name, /):
        self._name = _sanitize_name(type(self), name, token=False)
        return self

    def set_descr(self, descr, /):
        self._descr = _sanitize_descr(type(self), descr)
        return self

    def set_required(self, required=True, /):
        self._required = _sanitize_required(type(self), required)
        return self


class Option(metaclass=ArgumentType):
    """
    Named option definition.

    An option is matched by "--<name>" or, when a shorthand is set, by
    "-<shorthand>". Without a value type it is a presence flag (True when
    seen, False otherwise); with one, the token following it is its value,
    validated and coerced according to the value type.
    """

    __introspectable__ = (
        "name",
        "shorthand",
        "descr",
        "required",
        "accepts",
        "group",
    )

    def __init__(self, name, shorthand=Unset, descr=Unset, accepts=Unset, required=False):
        self._group = pluralize(type(self).__typename__)
        self.set_name(name)
        self.set_shorthand(shorthand)
        self.set_descr(descr)
        self.set_accepts(accepts)
        self.set_required(required)

    @property
    def names(self):
        """
        The literal tokens that select this option, shorthand first.
        """
        if self._shorthand is None:
            return ("--" + self._name,)
        return ("-" + self._shorthand, "--" + self._name)

    def set_name(self, name, /):
        self._name = _sanitize_name(type(self), name)
        return self

    def set_shorthand(self, shorthand, /):
        if shorthand is None or shorthand is Unset:
            self._shorthand = None
        else:
            self._shorthand = _sanitize_name(type(self), shorthand, "shorthand")
        return self

    def set_descr(self, descr, /):
        self._descr = _sanitize_descr(type(self), descr)
        return self

    def set_accepts(self, accepts, /):
        self._accepts = _sanitize_accepts(type(self), accepts)
        return self

    def set_required(self, required=True, /):
        self._required = _sanitize_required(type(self), required)
        return self

    def match(self, token, /):
        """
        True iff token is exactly "--<name>" or "-<shorthand>".
        """
        return token == "--" + self._name or (self._shorthand is not None and token == "-" + self._shorthand)

    def valid_value(self, token, /):
        """
        Check whether token is an acceptable value for this option.

        - string: always.
        - integer: the permissive parse yields a finite, integral number.
        - float: the permissive parse yields anything but NaN.
        - flags accept no value at all.
        """
        match self._accepts:
            case ValueType.STRING:
                return isinstance(token, str)
            case ValueType.INTEGER:
                value = _parsefloat(token)
                return math.isfinite(value) and value.is_integer()
            case ValueType.FLOAT:
                return not math.isnan(_parsefloat(token))
        return False

    def parse_value(self, token, /):
        """
        Coerce a token already accepted by valid_value().

        Raises
        - ValueError: when token is not valid for the value type.
        """
        match self._accepts:
            case ValueType.INTEGER | ValueType.FLOAT if not self.valid_value(token):
                raise ValueError(f"invalid {self._accepts} value {token!r} for {type(self).__typename__} {self._name!r}")
            case ValueType.INTEGER:
                return int(_parsefloat(token))
            case ValueType.FLOAT:
                return _parsefloat(token)
        return token


__all__ = (
    # Types
    "ValueType",

    # Classes (definitions)
    "Argument",
    "Option",
)

# The metaclass is an implementation detail; keep it out of star-imports and docs.
del ArgumentType
