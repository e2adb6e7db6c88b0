"""
Exceptions raised by the N-Triples codec and the SQL compiler.

- ParseError: lexical violations, with an offset into the original input
- QueryError: query shapes the compiler cannot plan
- ArgumentError: programmer misuse of the API
- InternalError: paths that must never be reached
"""

from enum import Enum
from typing import Optional


class MPTStoreError(Exception):
    """Base class for all rdf-mptstore errors."""
    pass


class ParseErrorKind(Enum):
    """Lexical error kinds; the value is the human readable message."""
    EXPECTED_ABSOLUTE_URI = "Expected absolute URI"
    EXPECTED_AT_CARET_OR_EOF = "Expected '@', '^', or EOF"
    EXPECTED_CARET = "Expected '^'"
    EXPECTED_CLOSE_ANGLE = "Expected '>'"
    EXPECTED_OPEN_ANGLE = "Expected '<'"
    EXPECTED_QUOTE = "Expected '\"'"
    EXPECTED_QUOTE_OR_ANGLE = "Expected '\"' or '<'"
    EXPECTED_SPACE_OR_TAB = "Expected ' ' or TAB"
    EXPECTED_TERMINATOR = "Expected ' .'"
    EXPECTED_LANGUAGE = "Expected language tag"
    NON_ASCII_CHAR = "Non-ASCII character"
    UNESCAPED_BACKSLASH = "Unescaped backslash"
    ILLEGAL_ESCAPE = "Illegal Unicode escape sequence"
    INCOMPLETE_ESCAPE = "Incomplete Unicode escape sequence"
    SYNTAX = "Syntax error"


class ParseError(MPTStoreError):
    """
    A lexical error at a character offset of the parsed string.

    Attributes:
        kind: What went wrong
        offset: Character index into the string originally supplied
        line: 1-based line number when parsing multi-line documents
        detail: Optional extra context
    """

    def __init__(
        self,
        kind: ParseErrorKind,
        offset: int,
        line: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        self.kind = kind
        self.offset = offset
        self.line = line
        self.detail = detail
        super().__init__(self._format())

    @property
    def message(self) -> str:
        return self.kind.value

    def _format(self) -> str:
        where = f"offset {self.offset}"
        if self.line is not None:
            where = f"line {self.line}, {where}"
        text = f"{self.kind.value} at {where}"
        if self.detail:
            text += f": {self.detail}"
        return text

    def rebased(self, delta: int, limit: Optional[int] = None) -> "ParseError":
        """Return a copy whose offset is shifted into an enclosing string."""
        offset = self.offset + delta
        if limit is not None:
            offset = min(offset, limit)
        return ParseError(self.kind, offset, line=self.line, detail=self.detail)

    def at_line(self, line: int) -> "ParseError":
        return ParseError(self.kind, self.offset, line=line, detail=self.detail)


class QueryErrorKind(Enum):
    """Reasons a graph query cannot be compiled."""
    UNSUPPORTED_SUBQUERY = "Subqueries are not supported"
    UNKNOWN_ELEMENT = "Unknown query element type"
    CANNOT_BIND_ALL_STEPS = "Cannot bind all query steps"
    FILTER_UNBOUND = "Filter is unbound"
    UNMAPPED_TARGET = "Target variable is not bound by the query"
    OPTIONAL_IN_WHERE = "Condition from an optional element cannot be placed in WHERE"
    MISSING_REQUIRED = "Optional elements need at least one required element"


class QueryError(MPTStoreError):
    """A graph query that cannot be translated to SQL."""

    def __init__(self, kind: QueryErrorKind, detail: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        message = kind.value if not detail else f"{kind.value}: {detail}"
        super().__init__(message)


class ArgumentError(MPTStoreError, ValueError):
    """Invalid argument supplied by the caller."""
    pass


class InternalError(MPTStoreError, RuntimeError):
    """Unreachable state; indicates a bug in rdf-mptstore."""
    pass
