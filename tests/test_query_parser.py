"""
Tests for the query text parser and one-step compilation.
"""

import pytest

from rdf_mptstore.config import CompilerConfig
from rdf_mptstore.errors import ParseError, ParseErrorKind, QueryError, QueryErrorKind
from rdf_mptstore.models import (
    IRIReference,
    LanguageLiteral,
    PlainLiteral,
    TriplePattern,
    TypedLiteral,
    Variable,
)
from rdf_mptstore.query import GraphPattern, GraphQuery, NodeFilter
from rdf_mptstore.query.parser import GraphQueryParser, compile_query, parse_query
from rdf_mptstore.sql import Dialect

EX = "http://example.org/"
XSD = "http://www.w3.org/2001/XMLSchema#"
PREFIXES = f"PREFIX ex: <{EX}>\nPREFIX xsd: <{XSD}>\n"


def iri(local: str) -> IRIReference:
    return IRIReference(EX + local)


class TestParsing:
    """Query text to GraphQuery."""

    def test_basic_select(self):
        parsed = parse_query(f"SELECT ?s ?o WHERE {{ ?s <{EX}p> ?o }}")
        assert parsed.targets == ["s", "o"]
        assert parsed.order_by is None
        assert parsed.query == GraphQuery([
            GraphPattern([TriplePattern(Variable("s"), iri("p"), Variable("o"))]),
        ])

    def test_prefixed_names(self):
        parsed = parse_query(PREFIXES + """
            SELECT ?s WHERE {
                ?s ex:knows ?o .
                ?o ex:name "Bob" .
            }
        """)
        triples = parsed.query.required()[0].triple_patterns
        assert triples == (
            TriplePattern(Variable("s"), iri("knows"), Variable("o")),
            TriplePattern(Variable("o"), iri("name"), PlainLiteral("Bob")),
        )
        assert parsed.prefixes["ex"] == EX

    def test_literal_forms(self):
        parsed = parse_query(PREFIXES + """
            SELECT ?s WHERE {
                ?s ex:label "chat"@fr .
                ?s ex:count "5"^^xsd:int .
                ?s ex:size "7"^^<http://www.w3.org/2001/XMLSchema#long> .
                ?s ex:weight 2.5
            }
        """)
        objects = [t.object for t in parsed.query.required()[0].triple_patterns]
        assert objects == [
            LanguageLiteral("chat", "fr"),
            TypedLiteral("5", IRIReference(XSD + "int")),
            TypedLiteral("7", IRIReference(XSD + "long")),
            TypedLiteral("2.5", IRIReference(XSD + "decimal")),
        ]

    def test_filters(self):
        parsed = parse_query(PREFIXES + """
            SELECT ?s WHERE {
                ?s ex:age ?age .
                ?s ex:name ?name .
                FILTER(?age >= 18)
                FILTER(?name like "A%")
            }
        """)
        assert parsed.query.required()[0].filters == (
            NodeFilter(Variable("age"), ">=", TypedLiteral("18", IRIReference(XSD + "integer"))),
            NodeFilter(Variable("name"), "LIKE", PlainLiteral("A%")),
        )

    def test_optional_and_groups(self):
        parsed = parse_query(PREFIXES + """
            SELECT ?s ?e WHERE {
                ?s ex:p ?o .
                { ?o ex:q ?z }
                OPTIONAL { ?s ex:email ?e }
            }
        """)
        query = parsed.query
        assert len(query.required()) == 2
        assert query.required()[1] == GraphPattern(
            [TriplePattern(Variable("o"), iri("q"), Variable("z"))]
        )
        assert query.optional() == (
            GraphPattern([TriplePattern(Variable("s"), iri("email"), Variable("e"))]),
        )

    def test_nested_optional_becomes_subquery(self):
        parsed = parse_query(PREFIXES + """
            SELECT ?s WHERE {
                ?s ex:p ?o .
                OPTIONAL { ?s ex:q ?x OPTIONAL { ?x ex:p ?y } }
            }
        """)
        assert isinstance(parsed.query.optional()[0], GraphQuery)

    @pytest.mark.parametrize("clause,expected", [
        ("ORDER BY ?o", ("o", False)),
        ("ORDER BY ASC(?o)", ("o", False)),
        ("order by desc(?o)", ("o", True)),
    ])
    def test_order_by(self, clause, expected):
        parsed = parse_query(f"SELECT ?s ?o WHERE {{ ?s <{EX}p> ?o }} {clause}")
        assert parsed.order_by == expected

    def test_comments_and_dollar_variables(self):
        parsed = GraphQueryParser().parse(f"""
            # all subjects
            SELECT $s WHERE {{ $s <{EX}p> ?o }}  # trailing
        """)
        assert parsed.targets == ["s"]


class TestParseErrors:

    def test_syntax_error(self):
        with pytest.raises(ParseError) as exc:
            parse_query("SELECT WHERE {")
        assert exc.value.kind is ParseErrorKind.SYNTAX

    def test_unknown_prefix(self):
        text = "SELECT ?s WHERE { ?s foo:bar ?o }"
        with pytest.raises(ParseError) as exc:
            parse_query(text)
        assert exc.value.kind is ParseErrorKind.SYNTAX
        assert exc.value.offset == text.index("foo:")
        assert "foo" in str(exc.value)

    def test_literal_error_offset(self):
        text = f'SELECT ?s WHERE {{ ?s <{EX}p> "a\\qb" }}'
        with pytest.raises(ParseError) as exc:
            parse_query(text)
        assert exc.value.kind is ParseErrorKind.UNESCAPED_BACKSLASH
        assert exc.value.offset == text.index("\\")

    def test_relative_iri(self):
        text = "SELECT ?s WHERE { ?s <p> ?o }"
        with pytest.raises(ParseError) as exc:
            parse_query(text)
        assert exc.value.kind is ParseErrorKind.EXPECTED_ABSOLUTE_URI
        assert exc.value.offset == text.index("<p>") + 1

    def test_filter_without_variable(self):
        with pytest.raises(ParseError) as exc:
            parse_query(f'SELECT ?s WHERE {{ ?s <{EX}p> ?o FILTER("a" = "b") }}')
        assert exc.value.kind is ParseErrorKind.SYNTAX


class TestCompileQuery:
    """Text to SQL in one step."""

    def test_two_hop(self, table_manager):
        statements = compile_query(PREFIXES + """
            SELECT ?x ?z WHERE { ?x ex:p1 ?y . ?y ex:p2 ?z }
            ORDER BY DESC(?z)
        """, table_manager)
        assert statements == [
            "SELECT t_p1.s, t_p2.o FROM t_p1 JOIN t_p2 ON (t_p1.o = t_p2.s) ORDER BY t_p2.o DESC"
        ]

    def test_optional_with_filter(self, table_manager):
        statements = compile_query(PREFIXES + """
            SELECT ?s ?o ?v WHERE {
                ?s ex:p ?o .
                OPTIONAL { ?s ex:q ?v FILTER(?v != "x") }
            }
        """, table_manager)
        assert statements == [
            "SELECT t_p.s, t_p.o, t_q.o FROM t_p "
            "LEFT OUTER JOIN t_q ON (t_p.s = t_q.s AND t_q.o != 'x')"
        ]

    def test_dialect_from_config(self, table_manager):
        text = PREFIXES + 'SELECT ?s WHERE { ?s ex:p "a\\\\b" }'
        derby = compile_query(text, table_manager, CompilerConfig(dialect=Dialect.DERBY))
        postgres = compile_query(text, table_manager)
        assert derby == [r"SELECT t_p.s FROM t_p WHERE t_p.o = 'a\\b'"]
        assert postgres == [r"SELECT t_p.s FROM t_p WHERE t_p.o = 'a\\\\b'"]

    def test_nested_optional_rejected(self, table_manager):
        with pytest.raises(QueryError) as exc:
            compile_query(PREFIXES + """
                SELECT ?s WHERE {
                    ?s ex:p ?o .
                    OPTIONAL { ?s ex:q ?x { ?x ex:p ?y } }
                }
            """, table_manager)
        assert exc.value.kind is QueryErrorKind.UNSUPPORTED_SUBQUERY

    def test_empty_where(self, table_manager):
        assert compile_query("SELECT ?s WHERE { }", table_manager) == ["SELECT 1 WHERE 1=0"]
