"""
Join structures rendered into the FROM clause.

A Joinable is anything that can appear on either side of a JOIN: a single
aliased predicate table (JoinTable) or a whole JoinSequence, which is
parenthesized when nested.
"""

from abc import ABC, abstractmethod
from enum import Enum
import logging
from typing import Iterable, List, Optional

from rdf_mptstore.query.binder import Bindings, BoundTriplePattern, VarOccurrence

logger = logging.getLogger(__name__)


class JoinType(str, Enum):
    INNER_JOIN = "JOIN"
    LEFT_OUTER_JOIN = "LEFT OUTER JOIN"


class JoinConditions:
    """Insertion-ordered set of conditions, rendered joined by AND."""

    def __init__(self, conditions: Iterable[str] = ()):
        self._conditions = {}
        for condition in conditions:
            self.add_condition(condition)

    def add(self, left: str, operator: str, right: str) -> None:
        self.add_condition(f"{left.strip()} {operator.strip()} {right.strip()}")

    def add_condition(self, condition: str) -> None:
        self._conditions[condition.strip()] = None

    def extend(self, conditions: Iterable[str]) -> None:
        for condition in conditions:
            self.add_condition(condition)

    def __iter__(self):
        return iter(self._conditions)

    def __len__(self) -> int:
        return len(self._conditions)

    def __bool__(self) -> bool:
        return bool(self._conditions)

    def __str__(self) -> str:
        return " AND ".join(self._conditions)


class Joinable(ABC):
    """Something that can be joined into a JoinSequence."""

    @abstractmethod
    def join_vars(self) -> List[VarOccurrence]:
        """Variable occurrences exposed to the rest of the query."""
        ...

    @property
    @abstractmethod
    def alias(self) -> str:
        """Name this joinable is referred to by in the enclosing query."""
        ...

    @abstractmethod
    def aliases(self) -> List[str]:
        """Table aliases introduced by this joinable."""
        ...

    @abstractmethod
    def declaration(self) -> str:
        """Text of this joinable as it appears in a FROM clause."""
        ...

    def __str__(self) -> str:
        return self.declaration()


class JoinTable(Joinable):
    """A single predicate table bound to one triple pattern."""

    def __init__(self, bound: BoundTriplePattern):
        self.bound = bound

    @property
    def alias(self) -> str:
        return self.bound.table.alias

    def join_vars(self) -> List[VarOccurrence]:
        return self.bound.join_vars()

    def aliases(self) -> List[str]:
        return [self.alias]

    def declaration(self) -> str:
        name = self.bound.table.name
        if name == self.alias:
            return name
        return f"{name} AS {self.alias}"


class JoinSequence(Joinable):
    """
    A chain of joins built up incrementally.

    Example:
        t1 JOIN t2 ON (t1.o = t2.s) LEFT OUTER JOIN t3 ON (t1.s = t3.s)
    """

    def __init__(self, start: Joinable):
        self._join = start.declaration()
        self.joined: List[Joinable] = [start]

    def add_join(
        self,
        join_type: JoinType,
        joinable: Optional[Joinable],
        conditions: Optional[JoinConditions] = None,
    ) -> None:
        if joinable is None:
            logger.info("Skipping join")
            return
        logger.debug(f"Adding {join_type.value} of {joinable.alias}")
        self._join += f" {join_type.value} {joinable.declaration()}"
        self.joined.append(joinable)
        if conditions:
            self._join += f" ON ({conditions})"

    def conditions_against(self, joinable: Joinable, bindings: Bindings) -> JoinConditions:
        """
        Join conditions linking a joinable to this sequence.

        An occurrence already in the sequence is equated with a candidate
        occurrence of the same variable when it is the one the variable is
        bound to.
        """
        conditions = JoinConditions()
        for existing in self.join_vars():
            if bindings.get(existing.name) != existing.column:
                continue
            for candidate in joinable.join_vars():
                if candidate.name == existing.name and candidate.column != existing.column:
                    conditions.add(existing.column, "=", candidate.column)
        return conditions

    def join_vars(self) -> List[VarOccurrence]:
        seen = {}
        for joinable in self.joined:
            for occurrence in joinable.join_vars():
                seen.setdefault(occurrence, None)
        return list(seen)

    @property
    def alias(self) -> str:
        # A nested sequence has no alias of its own; it is referred to by its text
        return self.declaration()

    def aliases(self) -> List[str]:
        result = []
        for joinable in self.joined:
            result.extend(joinable.aliases())
        return result

    def declaration(self) -> str:
        if len(self.joined) == 1:
            return self._join
        return f"({self._join})"

    def __str__(self) -> str:
        return self._join
