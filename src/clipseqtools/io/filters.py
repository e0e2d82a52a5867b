"""Typed read filters.

A ReadFilter is a conjunction of ColumnCondition objects, each testing
one read attribute (``copy_number``, ``query_length``, ``cigar``, ...) or
one annotation column (``rmsk``, ``deletion``, ``transcript``, ...). The
filter is built once at startup and handed to the reads readers; the
collection itself never parses filter text.

Supported operators: ``>``, ``>=``, ``<``, ``<=``, ``=``, ``!=``, ``def``,
``undef``.

Example:
    >>> from clipseqtools.io.filters import ReadFilter, parse_filter_expression
    >>> read_filter = ReadFilter.from_expressions(
    ...     ['query_length=">31"', 'rmsk="undef"']
    ... )
    >>> read_filter.conditions[0].operator
    <FilterOperator.GT: '>'>
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING, Any

import attrs

from clipseqtools.config import ConfigurationError

if TYPE_CHECKING:
    from clipseqtools.io.reads import Read

logger = logging.getLogger(__name__)


class FilterOperator(Enum):
    """Comparison applied by a ColumnCondition."""

    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="
    EQ = "="
    NE = "!="
    DEFINED = "def"
    UNDEFINED = "undef"

    @property
    def needs_value(self) -> bool:
        return self not in (FilterOperator.DEFINED, FilterOperator.UNDEFINED)


_NUMERIC_OPERATORS = {
    FilterOperator.GT,
    FilterOperator.GE,
    FilterOperator.LT,
    FilterOperator.LE,
}

# Longest operators first so ">=" wins over ">"
_PATTERN = re.compile(r"^(>=|<=|!=|>|<|=)?(.*)$")
_EXPRESSION = re.compile(r"^(.+?)=(.+)$")


def _coerce(value: str) -> Any:
    """Turn numeric text into int/float, leave everything else as text."""
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


@attrs.define(frozen=True, slots=True)
class ColumnCondition:
    """A single test on one read column.

    Attributes:
        column: Read attribute or annotation name.
        operator: Comparison operator.
        value: Right-hand side (None for def/undef).
    """

    column: str
    operator: FilterOperator
    value: Any = None

    def __attrs_post_init__(self) -> None:
        if self.operator.needs_value and self.value is None:
            raise ConfigurationError(
                f"Filter on '{self.column}' with '{self.operator.value}' needs a value"
            )

    def matches(self, read: Read) -> bool:
        """Check the condition against a read."""
        actual = read.column(self.column)

        if self.operator is FilterOperator.DEFINED:
            return actual is not None
        if self.operator is FilterOperator.UNDEFINED:
            return actual is None
        if actual is None:
            return False

        if self.operator in _NUMERIC_OPERATORS:
            try:
                actual = float(actual)
            except (TypeError, ValueError):
                return False
            expected = float(self.value)
            if self.operator is FilterOperator.GT:
                return actual > expected
            if self.operator is FilterOperator.GE:
                return actual >= expected
            if self.operator is FilterOperator.LT:
                return actual < expected
            return actual <= expected

        if isinstance(self.value, (int, float)) and isinstance(actual, (int, float)):
            equal = actual == self.value
        else:
            equal = str(actual) == str(self.value)
        return equal if self.operator is FilterOperator.EQ else not equal


@attrs.define(frozen=True, slots=True)
class ReadFilter:
    """Conjunction of column conditions; an empty filter keeps every read.

    Attributes:
        conditions: Conditions that must all hold.
    """

    conditions: tuple[ColumnCondition, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.conditions)

    def matches(self, read: Read) -> bool:
        """Check all conditions against a read."""
        return all(condition.matches(read) for condition in self.conditions)

    @classmethod
    def from_expressions(cls, expressions: Iterable[str]) -> ReadFilter:
        """Build a filter from ``column="pattern"`` expressions."""
        return cls(tuple(parse_filter_expression(e) for e in expressions))


def parse_filter_expression(expression: str) -> ColumnCondition:
    """Parse one ``column="pattern"`` expression.

    Args:
        expression: e.g. ``query_length=">31"`` or ``deletion="def"``.

    Returns:
        The equivalent ColumnCondition.

    Raises:
        ConfigurationError: If the expression is malformed.
    """
    match = _EXPRESSION.match(expression.strip())
    if not match:
        raise ConfigurationError(
            f"Invalid filter '{expression}'. Expected column=\"pattern\""
        )

    column = match.group(1).strip()
    pattern = match.group(2).strip().strip("\"'")
    if not pattern:
        raise ConfigurationError(f"Empty pattern in filter '{expression}'")

    if pattern == FilterOperator.DEFINED.value:
        return ColumnCondition(column, FilterOperator.DEFINED)
    if pattern == FilterOperator.UNDEFINED.value:
        return ColumnCondition(column, FilterOperator.UNDEFINED)

    operator_match = _PATTERN.match(pattern)
    assert operator_match is not None
    symbol, value = operator_match.group(1), operator_match.group(2)
    if not value:
        raise ConfigurationError(f"Missing value in filter '{expression}'")

    operator = FilterOperator(symbol) if symbol else FilterOperator.EQ
    condition = ColumnCondition(column, operator, _coerce(value))
    logger.debug(f"Parsed filter {expression!r} -> {condition}")
    return condition
