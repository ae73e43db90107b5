"""
Query string parameters for Canvas requests.

Values are converted to strings when they are added, so a rendered query
string never depends on when it is rendered.
"""

import enum
import re
from typing import Any, Iterable, List, Mapping, NamedTuple, Tuple, Union
from urllib.parse import quote_plus, urlencode

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_snake_case(name: str) -> str:
    """Convert a member name such as ``AllDates`` or ``ALL_DATES`` to ``all_dates``."""
    if name.isupper():
        return name.lower()
    return _CAMEL_BOUNDARY.sub("_", name).replace("-", "_").lower()


class Parameter(NamedTuple):
    """A single name/value pair."""

    name: str
    value: str


class Parameters(List[Parameter]):
    """
    An ordered list of parameters.

    Names may repeat (e.g. ``include[]``). Rendering with ``str()`` produces a
    query string that can be appended directly to a URL:

        >>> str(Parameters().add("one", 1).add("two", "second"))
        '?one=1&two=second'
    """

    @classmethod
    def new(cls) -> "Parameters":
        return cls()

    @classmethod
    def from_values(cls, values: Union["Parameters", Mapping[str, Any], None]) -> "Parameters":
        """Build parameters from a mapping (or return a copy of existing parameters)."""
        parameters = cls()
        if values is None:
            return parameters
        if isinstance(values, Mapping):
            for name, value in values.items():
                parameters.add(name, value)
            return parameters
        parameters.extend(values)
        return parameters

    def add(self, name: str, value: Union[str, int, bool, enum.Enum]) -> "Parameters":
        """
        Add a parameter, converting the value to its string form.

        - bool values become ``true``/``false``
        - int values use their decimal form
        - enum values use the lower-cased member name
        - flag enums add one parameter per member that is set, using the
          snake_case member name; the zero member is never added

        Returns:
            The parameters, so calls can be chained
        """
        if isinstance(value, bool):
            self.append(Parameter(name, "true" if value else "false"))
        elif isinstance(value, enum.Flag):
            self._add_flags(name, value)
        elif isinstance(value, enum.Enum):
            self.append(Parameter(name, value.name.lower()))
        elif isinstance(value, int):
            self.append(Parameter(name, str(value)))
        elif isinstance(value, str):
            self.append(Parameter(name, value))
        else:
            raise TypeError(f"Unsupported parameter type for {name}: {type(value).__name__}")
        return self

    def _add_flags(self, name: str, value: enum.Flag) -> None:
        # __members__ keeps declaration order and includes aliases
        for member_name, flag in type(value).__members__.items():
            if not flag.value or (value.value & flag.value) != flag.value:
                continue
            self.append(Parameter(name, to_snake_case(member_name)))

    def to_pairs(self) -> List[Tuple[str, str]]:
        return [(p.name, p.value) for p in self]

    def to_form(self) -> str:
        """Encode the parameters as an ``application/x-www-form-urlencoded`` body."""
        return urlencode(self.to_pairs())

    def __add__(self, other: Iterable[Parameter]) -> "Parameters":
        combined = Parameters(self)
        combined.extend(other)
        return combined

    def __str__(self) -> str:
        if not self:
            return ""
        return "?" + "&".join(f"{p.name}={quote_plus(p.value)}" for p in self)
