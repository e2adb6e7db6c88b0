"""
Graph Query Parser using pyparsing.

Parses a small SPARQL subset into a GraphQuery plus its target variables
and ordering:

    PREFIX ex: <http://example.org/>
    SELECT ?s ?name
    WHERE {
        ?s ex:name ?name .
        ?s ex:age ?age .
        FILTER(?age > 30)
        OPTIONAL { ?s ex:email ?email }
    }
    ORDER BY DESC(?name)

Top-level triples and filters form the first required graph pattern,
nested { } groups further required patterns and OPTIONAL { } blocks the
optional ones. Groups nesting further groups become subquery elements,
which the compiler rejects.

IRIs and literals use N-Triples syntax and are decoded by the N-Triples
codec, so literal text must be ASCII with N-Triples escapes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import pyparsing as pp
from pyparsing import (
    CaselessKeyword,
    Forward,
    Group,
    Literal as Lit,
    OneOrMore,
    Optional as Opt,
    Regex,
    Suppress,
    ZeroOrMore,
)

from rdf_mptstore.config import CompilerConfig
from rdf_mptstore.errors import ArgumentError, ParseError, ParseErrorKind
from rdf_mptstore.formats.ntriples import parse_iri, parse_literal
from rdf_mptstore.models import (
    IRIReference,
    LanguageLiteral,
    TriplePattern,
    TypedLiteral,
    Variable,
)
from rdf_mptstore.query.ast import GraphPattern, GraphQuery, NodeFilter, QueryElement
from rdf_mptstore.query.provider import GraphQuerySQLProvider
from rdf_mptstore.storage.tables import TableManager

XSD = "http://www.w3.org/2001/XMLSchema#"

_VARIABLE_RE = r"[?$][A-Za-z_][A-Za-z0-9_]*"
_PNAME_NS_RE = r"(?:[A-Za-z][A-Za-z0-9_\-]*)?:"
_PNAME_RE = _PNAME_NS_RE + r"(?:[A-Za-z0-9_\-.]*[A-Za-z0-9_\-])?"


# =============================================================================
# Intermediate parse results (resolved once all prefixes are known)
# =============================================================================

@dataclass(frozen=True)
class _PrefixedName:
    text: str
    loc: int


@dataclass(frozen=True)
class _PendingTypedLiteral:
    lexical: str
    datatype: _PrefixedName


@dataclass(frozen=True)
class _RawTriple:
    terms: Tuple[Any, Any, Any]
    loc: int


@dataclass(frozen=True)
class _RawFilter:
    left: Any
    operator: str
    right: Any
    loc: int


@dataclass
class _Group:
    items: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class _OptionalGroup:
    group: _Group


@dataclass(frozen=True)
class _Prefix:
    name: str
    iri: IRIReference


@dataclass(frozen=True)
class _Order:
    name: str
    desc: bool


@dataclass
class ParsedQuery:
    """A parsed query: the graph query, its targets and optional ordering."""
    query: GraphQuery
    targets: List[str]
    order_by: Optional[Tuple[str, bool]] = None
    prefixes: Dict[str, str] = field(default_factory=dict)


class GraphQueryParser:
    """
    Parser for the SPARQL subset understood by the MPT compiler.

    Supports:
    - PREFIX declarations and prefixed names
    - SELECT with explicit variables
    - Triple patterns, FILTER(term op term), OPTIONAL and nested groups
    - ORDER BY ?v, ASC(?v) or DESC(?v)
    """

    def __init__(self):
        self._build_grammar()

    def _build_grammar(self):
        """Build the pyparsing grammar."""
        pp.ParserElement.enable_packrat()

        SELECT = CaselessKeyword("SELECT")
        WHERE = CaselessKeyword("WHERE")
        FILTER = CaselessKeyword("FILTER")
        OPTIONAL = CaselessKeyword("OPTIONAL")
        PREFIX = CaselessKeyword("PREFIX")
        ORDER = CaselessKeyword("ORDER")
        BY = CaselessKeyword("BY")
        ASC = CaselessKeyword("ASC")
        DESC = CaselessKeyword("DESC")
        LIKE = CaselessKeyword("LIKE")

        LBRACE = Suppress(Lit("{"))
        RBRACE = Suppress(Lit("}"))
        LPAREN = Suppress(Lit("("))
        RPAREN = Suppress(Lit(")"))
        DOT = Suppress(Lit("."))

        # =================================================================
        # Terms
        # =================================================================

        variable = Regex(_VARIABLE_RE).set_parse_action(
            lambda t: Variable(t[0][1:])
        )

        iri_ref = Regex(r'<[^<>"{}|^`\\\x00-\x20]*>').set_parse_action(self._make_iri)

        prefixed_name = Regex(_PNAME_RE).set_parse_action(
            lambda s, loc, t: _PrefixedName(t[0], loc)
        )

        string = Regex(r'"(?:[^"\\\n\r]|\\.)*"').set_parse_action(self._make_string)
        lang_tag = Regex(r"@[A-Za-z]+(?:-[A-Za-z0-9]+)*")
        datatype = Suppress(Lit("^^")) + (iri_ref | prefixed_name)
        literal = (string + Opt(lang_tag | datatype)).set_parse_action(self._make_literal)

        number = Regex(r"[+-]?\d+(?:\.\d+)?").set_parse_action(self._make_number)

        term = variable | iri_ref | literal | number | prefixed_name

        # =================================================================
        # Patterns
        # =================================================================

        triple = (term + term + term + Opt(DOT)).set_parse_action(
            lambda s, loc, t: _RawTriple((t[0], t[1], t[2]), loc)
        )

        comp_op = (
            Lit("<=") | Lit(">=") | Lit("!=") | Lit("<>") |
            Lit("=") | Lit("<") | Lit(">") | LIKE
        )

        filter_clause = (
            Suppress(FILTER) + LPAREN + term + comp_op + term + RPAREN + Opt(DOT)
        ).set_parse_action(lambda s, loc, t: _RawFilter(t[0], t[1], t[2], loc))

        group = Forward()

        optional_block = (Suppress(OPTIONAL) + group + Opt(DOT)).set_parse_action(
            lambda t: _OptionalGroup(t[0])
        )

        group <<= (
            LBRACE + ZeroOrMore(filter_clause | optional_block | group | triple) + RBRACE
        ).set_parse_action(lambda t: _Group(list(t)))

        # =================================================================
        # Query
        # =================================================================

        prefix_decl = (
            Suppress(PREFIX) + Regex(_PNAME_NS_RE) + iri_ref
        ).set_parse_action(lambda t: _Prefix(t[0][:-1], t[1]))

        select_clause = Suppress(SELECT) + Group(OneOrMore(variable))

        order_condition = (
            (Suppress(DESC) + LPAREN + Regex(_VARIABLE_RE) + RPAREN).set_parse_action(
                lambda t: _Order(t[0][1:], True)
            ) |
            (Suppress(ASC) + LPAREN + Regex(_VARIABLE_RE) + RPAREN).set_parse_action(
                lambda t: _Order(t[0][1:], False)
            ) |
            Regex(_VARIABLE_RE).set_parse_action(lambda t: _Order(t[0][1:], False))
        )
        order_clause = Suppress(ORDER) + Suppress(BY) + order_condition

        self.query = (
            ZeroOrMore(prefix_decl) +
            select_clause +
            Suppress(Opt(WHERE)) +
            group +
            Opt(order_clause)
        )
        self.query.ignore(pp.pythonStyleComment)

    # =====================================================================
    # Parse actions
    # =====================================================================

    @staticmethod
    def _make_iri(s, loc, tokens):
        try:
            return parse_iri(tokens[0])
        except ParseError as e:
            raise e.rebased(loc) from None

    @staticmethod
    def _make_string(s, loc, tokens):
        # Attached to the quoted token itself so loc is its first character
        try:
            return parse_literal(tokens[0])
        except ParseError as e:
            raise e.rebased(loc) from None

    @staticmethod
    def _make_literal(tokens):
        plain = tokens[0]
        if len(tokens) == 1:
            return plain
        tail = tokens[1]
        if isinstance(tail, IRIReference):
            return TypedLiteral(plain.lexical, tail)
        if isinstance(tail, _PrefixedName):
            return _PendingTypedLiteral(plain.lexical, tail)
        return LanguageLiteral(plain.lexical, tail[1:])

    @staticmethod
    def _make_number(tokens):
        text = tokens[0]
        datatype = "decimal" if "." in text else "integer"
        return TypedLiteral(text, IRIReference(XSD + datatype))

    # =====================================================================
    # Public API
    # =====================================================================

    def parse(self, query_string: str) -> ParsedQuery:
        """
        Parse a query string.

        Args:
            query_string: The query to parse

        Returns:
            ParsedQuery with the GraphQuery, targets and ordering

        Raises:
            ParseError: If the query is malformed
        """
        try:
            tokens = self.query.parse_string(query_string, parse_all=True)
        except pp.ParseBaseException as e:
            raise ParseError(
                ParseErrorKind.SYNTAX, e.loc, line=e.lineno, detail=e.msg
            ) from None
        return _QueryBuilder(query_string).build(tokens)


class _QueryBuilder:
    """Resolves prefixed names and assembles the GraphQuery."""

    def __init__(self, text: str):
        self.text = text
        self.prefixes: Dict[str, str] = {}

    def build(self, tokens) -> ParsedQuery:
        targets: List[str] = []
        where: Optional[_Group] = None
        order: Optional[_Order] = None

        for token in tokens:
            if isinstance(token, _Prefix):
                self.prefixes[token.name] = token.iri.value
            elif isinstance(token, pp.ParseResults):
                targets = [v.name for v in token]
            elif isinstance(token, _Group):
                where = token
            elif isinstance(token, _Order):
                order = token

        query = self._graph_query(where or _Group())
        order_by = (order.name, order.desc) if order is not None else None
        return ParsedQuery(query, targets, order_by, dict(self.prefixes))

    def _error(self, loc: int, detail: str) -> ParseError:
        return ParseError(
            ParseErrorKind.SYNTAX, loc, line=pp.lineno(loc, self.text), detail=detail
        )

    def _graph_query(self, group: _Group) -> GraphQuery:
        triples, filters, required, optional = [], [], [], []
        for item in group.items:
            if isinstance(item, _RawTriple):
                triples.append(self._triple(item))
            elif isinstance(item, _RawFilter):
                filters.append(self._filter(item))
            elif isinstance(item, _OptionalGroup):
                optional.append(self._element(item.group))
            elif isinstance(item, _Group):
                required.append(self._element(item))

        if triples or filters:
            required.insert(0, GraphPattern(tuple(triples), tuple(filters)))
        return GraphQuery(tuple(required), tuple(optional))

    def _element(self, group: _Group) -> QueryElement:
        nested = any(isinstance(i, (_Group, _OptionalGroup)) for i in group.items)
        if nested:
            return self._graph_query(group)
        return GraphPattern(
            tuple(self._triple(i) for i in group.items if isinstance(i, _RawTriple)),
            tuple(self._filter(i) for i in group.items if isinstance(i, _RawFilter)),
        )

    def _triple(self, raw: _RawTriple) -> TriplePattern:
        terms = [self._resolve(t) for t in raw.terms]
        try:
            return TriplePattern(*terms)
        except ArgumentError as e:
            raise self._error(raw.loc, str(e)) from None

    def _filter(self, raw: _RawFilter) -> NodeFilter:
        left, right = self._resolve(raw.left), self._resolve(raw.right)
        try:
            return NodeFilter(left, raw.operator.upper(), right)
        except ArgumentError as e:
            raise self._error(raw.loc, str(e)) from None

    def _resolve(self, term):
        if isinstance(term, _PrefixedName):
            return self._expand(term)
        if isinstance(term, _PendingTypedLiteral):
            return TypedLiteral(term.lexical, self._expand(term.datatype))
        return term

    def _expand(self, name: _PrefixedName) -> IRIReference:
        prefix, _, local = name.text.partition(":")
        namespace = self.prefixes.get(prefix)
        if namespace is None:
            raise self._error(name.loc, f"Unknown prefix '{prefix}:'")
        try:
            return IRIReference(namespace + local)
        except ArgumentError as e:
            raise self._error(name.loc, str(e)) from None


# Module-level parser instance for convenience
_parser: Optional[GraphQueryParser] = None


def parse_query(query_string: str) -> ParsedQuery:
    """
    Parse a query string with a cached parser instance.

    Args:
        query_string: The query to parse

    Returns:
        ParsedQuery
    """
    global _parser
    if _parser is None:
        _parser = GraphQueryParser()
    return _parser.parse(query_string)


def compile_query(
    query_string: str,
    table_manager: TableManager,
    config: Optional[CompilerConfig] = None,
) -> List[str]:
    """
    Parse a query and translate it to SQL in one step.

    Args:
        query_string: The query text
        table_manager: Resolves predicates to tables
        config: Compiler settings; defaults to CompilerConfig()

    Returns:
        The SQL statements
    """
    parsed = parse_query(query_string)
    provider = GraphQuerySQLProvider.from_config(
        table_manager, parsed.query, config or CompilerConfig()
    )
    provider.set_targets(parsed.targets)
    if parsed.order_by is not None:
        provider.order_by(*parsed.order_by)
    return provider.get_sql()
