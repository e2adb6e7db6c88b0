"""Shared fixtures for rdf-mptstore tests."""

import pytest

from rdf_mptstore.models import IRIReference
from rdf_mptstore.storage.tables import MemoryTableManager

EX = "http://example.org/"


@pytest.fixture
def table_manager():
    """Predicates p, p1, p2 and q stored in t_p, t_p1, t_p2 and t_q."""
    return MemoryTableManager({
        IRIReference(EX + "p"): "t_p",
        IRIReference(EX + "p1"): "t_p1",
        IRIReference(EX + "p2"): "t_p2",
        IRIReference(EX + "q"): "t_q",
    })
