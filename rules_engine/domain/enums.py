"""
Domain enums for rule trees.

Values are the literal strings used in the rule wire format.
"""

from enum import Enum


class ConditionType(str, Enum):
    """Branch of a condition node. Order matters: it is the lookup precedence."""

    ANY = "any"
    ALL = "all"
    NONE = "none"


class Operator(str, Enum):
    """
    Supported constraint operators.
    Constraint: constraint.operator must be one of these values.
    """

    EQUALS = "equals"
    DOES_NOT_EQUAL = "does not equal"
    GREATER_THAN = "greater than"
    LESS_THAN = "less than"
    GREATER_THAN_OR_EQUAL = "greater than or equal"
    LESS_THAN_OR_EQUAL = "less than or equal"
    EXISTS = "exists"
    DOES_NOT_EXIST = "does not exist"
    IN = "in"
    NOT_IN = "not in"
    CONTAINS = "contains"
    NOT_CONTAINS = "not contains"
    CONTAINS_ANY = "contains any"
    NOT_CONTAINS_ANY = "not contains any"
    MATCHES = "matches"
    DOES_NOT_MATCH = "does not match"


OPERATOR_VALUES = frozenset(op.value for op in Operator)

# Operators whose constraint value must be a list
LIST_OPERATORS = frozenset(
    {Operator.IN, Operator.NOT_IN, Operator.CONTAINS_ANY, Operator.NOT_CONTAINS_ANY}
)

# Operators whose constraint value must compile as a regular expression
PATTERN_OPERATORS = frozenset({Operator.MATCHES, Operator.DOES_NOT_MATCH})

# Operators that test presence themselves instead of failing on an absent field
PRESENCE_OPERATORS = frozenset({Operator.EXISTS, Operator.DOES_NOT_EXIST})
