from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from mmcpabe.errors import MalformedInput


class Connector(str, Enum):
    AND = "AND"
    OR = "OR"


AND = Connector.AND
OR = Connector.OR


@dataclass(frozen=True)
class Policy:
    """
    Flat two-attribute access policy: (A AND B) or (A OR B).

    Order of the attributes is kept, so Policy(("a", "b"), AND) and
    Policy(("b", "a"), AND) are different values even though they
    admit the same keys.
    """
    attributes: Tuple[str, str]
    connector: Connector

    def __post_init__(self):
        attrs = self.attributes
        if isinstance(attrs, list):
            attrs = tuple(attrs)
            object.__setattr__(self, "attributes", attrs)
        if not isinstance(attrs, tuple) or len(attrs) != 2:
            raise MalformedInput("a policy names exactly two attributes")
        for a in attrs:
            if not isinstance(a, str) or not a:
                raise MalformedInput("attributes must be non-empty strings")
        if attrs[0] == attrs[1]:
            raise MalformedInput("policy attributes must be distinct")
        try:
            object.__setattr__(self, "connector", Connector(self.connector))
        except ValueError as e:
            raise MalformedInput("unknown connector %r" % (self.connector,)) from e

    @classmethod
    def all_of(cls, a, b) -> Policy:
        return cls((a, b), AND)

    @classmethod
    def any_of(cls, a, b) -> Policy:
        return cls((a, b), OR)

    def __str__(self):
        return "(%s %s %s)" % (self.attributes[0], self.connector.value, self.attributes[1])
