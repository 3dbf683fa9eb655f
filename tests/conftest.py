import pytest

from rdfgraph import Graph, LiteralNode, Triple, Uri

from .helpers import CANONICAL_TURTLE, EX, XSD, ex


@pytest.fixture
def canonical_turtle() -> str:
    return CANONICAL_TURTLE


@pytest.fixture
def small_graph() -> Graph:
    graph = Graph()
    graph.add_namespace("ex", Uri(EX))
    subject = graph.create_blank_node()
    graph.add_triple(Triple(subject, ex("name"), LiteralNode("Art", language="en")))
    graph.add_triple(Triple(ex("doc"), ex("maker"), subject))
    graph.add_triple(
        Triple(ex("doc"), ex("pages"), LiteralNode("12", datatype=Uri(XSD + "integer")))
    )
    return graph
