import pytest

from rdfgraph import (
    BlankNode,
    Graph,
    LiteralNode,
    NTriplesWriter,
    Triple,
    TurtleWriter,
    TurtleWriterOptions,
    Uri,
    UriNode,
    WriterError,
    parse_turtle,
    write_ntriples,
    write_turtle,
)
from rdfgraph.writers import escape_pn_local, escape_string_value

from .helpers import EX, RDF, XSD, ex


def graph_of(*triples, namespaces=None, base=None):
    graph = Graph(base)
    for prefix, uri in (namespaces or {}).items():
        graph.add_namespace(prefix, Uri(uri))
    graph.add_triples(triples)
    return graph


def test_blank_nodes_written_verbatim():
    graph = graph_of(
        Triple(
            BlankNode("auto0"),
            UriNode(Uri("http://example.org/show/localName")),
            BlankNode("auto1"),
        )
    )
    assert write_ntriples(graph) == "_:auto0 <http://example.org/show/localName> _:auto1 .\n"


def test_ntriples_for_canonical_document(canonical_turtle):
    assert write_ntriples(parse_turtle(canonical_turtle)) == (
        "<http://www.w3.org/2001/sw/RDFCore/ntriples/> "
        "<http://www.w3.org/1999/02/22-rdf-syntax-ns#type> <http://xmlns.com/foaf/0.1/Document> .\n"
        "<http://www.w3.org/2001/sw/RDFCore/ntriples/> "
        '<http://purl.org/dc/terms/title> "N-Triples"@en-US .\n'
        "<http://www.w3.org/2001/sw/RDFCore/ntriples/> "
        "<http://xmlns.com/foaf/0.1/maker> _:art .\n"
    )


def test_ntriples_literal_forms():
    graph = graph_of(
        Triple(ex("s"), ex("p"), LiteralNode("plain")),
        Triple(ex("s"), ex("p"), LiteralNode("12", datatype=Uri(XSD + "integer"))),
        Triple(ex("s"), ex("p"), LiteralNode("hi", language="en")),
        namespaces={"ex": EX},
        base=Uri(EX),
    )
    assert list(NTriplesWriter().iter_lines(graph)) == [
        f'<{EX}s> <{EX}p> "plain" .\n',
        f'<{EX}s> <{EX}p> "12"^^<{XSD}integer> .\n',
        f'<{EX}s> <{EX}p> "hi"@en .\n',
    ]


def test_empty_graph_writes_nothing():
    assert write_ntriples(Graph()) == ""
    assert write_turtle(Graph()) == ""


def test_string_escaping():
    assert escape_string_value('a "q" \\ \n\t\r\x01é') == 'a \\"q\\" \\\\ \\n\\t\\r\\u0001é'


def test_iri_escaping():
    graph = graph_of(Triple(ex("a b"), ex("p"), ex("c>d")))
    assert write_ntriples(graph) == f"<{EX}a\\u0020b> <{EX}p> <{EX}c\\u003Ed> .\n"


def test_invalid_blank_label_is_a_writer_error():
    graph = graph_of(Triple(BlankNode("not a label"), ex("p"), ex("o")))
    with pytest.raises(WriterError):
        write_ntriples(graph)
    with pytest.raises(WriterError):
        write_turtle(graph)


def test_literal_with_language_and_datatype_is_a_writer_error():
    literal = LiteralNode("x", language="en")
    object.__setattr__(literal, "datatype", Uri(XSD + "string"))
    graph = graph_of(Triple(ex("s"), ex("p"), literal))
    with pytest.raises(WriterError):
        write_ntriples(graph)


def test_malformed_language_tag_is_a_writer_error():
    graph = graph_of(Triple(ex("s"), ex("p"), LiteralNode("x", language="en us")))
    with pytest.raises(WriterError):
        write_ntriples(graph)


def test_turtle_groups_by_subject(small_graph):
    assert write_turtle(small_graph) == (
        "@prefix ex: <http://example.org/> .\n"
        "\n"
        '_:auto0 ex:name "Art"@en .\n'
        "ex:doc ex:maker _:auto0\n"
        "    ; ex:pages 12 .\n"
    )


def test_turtle_for_canonical_document(canonical_turtle):
    assert write_turtle(parse_turtle(canonical_turtle)) == (
        "@base <http://example.org/> .\n"
        "@prefix rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .\n"
        "@prefix foaf: <http://xmlns.com/foaf/0.1/> .\n"
        "\n"
        "<http://www.w3.org/2001/sw/RDFCore/ntriples/> a foaf:Document\n"
        '    ; <http://purl.org/dc/terms/title> "N-Triples"@en-US\n'
        "    ; foaf:maker _:art .\n"
    )


def test_turtle_object_lists():
    graph = parse_turtle(f"@prefix ex: <{EX}> .\nex:s ex:p ex:a, ex:b .")
    assert write_turtle(graph).endswith("ex:s ex:p ex:a, ex:b .\n")


def test_turtle_without_prefixes_or_base(canonical_turtle):
    options = TurtleWriterOptions(emit_base=False, use_prefixes=False)
    text = write_turtle(parse_turtle(canonical_turtle), options)
    assert "@prefix" not in text
    assert "@base" not in text
    assert "<http://xmlns.com/foaf/0.1/maker> _:art" in text
    assert text.startswith("<http://www.w3.org/2001/sw/RDFCore/ntriples/> a ")


def test_turtle_prefers_longest_namespace():
    graph = graph_of(
        Triple(ex("vocab/s"), ex("p"), ex("o")),
        namespaces={"ex": EX, "v": EX + "vocab/"},
    )
    assert write_turtle(graph).endswith("v:s ex:p ex:o .\n")


def test_turtle_falls_back_to_full_iri():
    graph = graph_of(Triple(ex("a b"), ex("p"), ex("o")), namespaces={"ex": EX})
    assert write_turtle(graph).endswith(f"<{EX}a\\u0020b> ex:p ex:o .\n")


def test_turtle_compacts_lists():
    graph = parse_turtle(f"@prefix ex: <{EX}> .\nex:s ex:p (1 (ex:a) 2) .")
    assert write_turtle(graph) == (
        "@prefix ex: <http://example.org/> .\n\nex:s ex:p (1 (ex:a) 2) .\n"
    )


def test_turtle_lists_off():
    graph = parse_turtle(f"@prefix ex: <{EX}> .\nex:s ex:p (1 2) .")
    text = write_turtle(graph, TurtleWriterOptions(lists="off"))
    assert "(" not in text
    assert "_:auto0 <http://www.w3.org/1999/02/22-rdf-syntax-ns#first> 1" in text


def test_shared_list_is_not_compacted():
    graph = parse_turtle(
        f"@prefix ex: <{EX}> .\n@prefix rdf: <{RDF}> .\n"
        "ex:s ex:p _:l .\nex:t ex:p _:l .\n_:l rdf:first ex:a ; rdf:rest rdf:nil ."
    )
    text = write_turtle(graph)
    assert "(" not in text
    assert "_:l rdf:first ex:a\n    ; rdf:rest rdf:nil .\n" in text


def test_literal_shorthand():
    graph = graph_of(
        Triple(ex("s"), ex("p"), LiteralNode("1.50", datatype=Uri(XSD + "decimal"))),
        Triple(ex("s"), ex("p"), LiteralNode("-2E5", datatype=Uri(XSD + "double"))),
        Triple(ex("s"), ex("p"), LiteralNode("false", datatype=Uri(XSD + "boolean"))),
        Triple(ex("s"), ex("p"), LiteralNode("abc", datatype=Uri(XSD + "integer"))),
        Triple(ex("s"), ex("p"), LiteralNode("1", datatype=Uri(XSD + "boolean"))),
        namespaces={"ex": EX, "xsd": XSD},
    )
    assert write_turtle(graph).endswith(
        'ex:s ex:p 1.50, -2E5, false, "abc"^^xsd:integer, "1"^^xsd:boolean .\n'
    )


def test_literal_shorthand_can_be_disabled():
    graph = graph_of(
        Triple(ex("s"), ex("p"), LiteralNode("12", datatype=Uri(XSD + "integer"))),
        namespaces={"ex": EX},
    )
    text = write_turtle(graph, TurtleWriterOptions(literal_shorthand=False))
    assert text.endswith(f'ex:s ex:p "12"^^<{XSD}integer> .\n')


def test_unknown_lists_mode_is_rejected():
    with pytest.raises(ValueError):
        TurtleWriter(TurtleWriterOptions(lists="sometimes"))


def test_writer_is_deterministic(small_graph):
    assert write_turtle(small_graph) == write_turtle(small_graph)
    assert write_ntriples(small_graph) == write_ntriples(small_graph)


@pytest.mark.parametrize(
    "local, expected",
    [
        ("", ""),
        ("name", "name"),
        ("a.b", "a.b"),
        ("a.", "a\\."),
        (".a", "\\.a"),
        ("a,b", "a\\,b"),
        ("%41", "%41"),
        ("1x", "1x"),
        ("a b", None),
    ],
)
def test_escape_pn_local(local, expected):
    assert escape_pn_local(local) == expected


def test_self_containing_list_is_written_as_triples():
    graph = parse_turtle(
        f"@prefix rdf: <{RDF}> .\n_:l rdf:first _:l ; rdf:rest rdf:nil ."
    )
    text = write_turtle(graph)
    assert "(" not in text
    assert parse_turtle(text).is_isomorphic(graph)


def test_lists_nested_only_in_each_other_are_written_as_triples():
    graph = parse_turtle(
        f"@prefix rdf: <{RDF}> .\n"
        "_:a rdf:first _:b ; rdf:rest rdf:nil .\n"
        "_:b rdf:first _:a ; rdf:rest rdf:nil ."
    )
    text = write_turtle(graph)
    assert "(" not in text
    assert parse_turtle(text).is_isomorphic(graph)


def test_nested_list_is_compacted_inside_its_parent():
    graph = parse_turtle(f"@prefix ex: <{EX}> .\nex:s ex:p ( ( 1 ) 2 ) .")
    assert write_turtle(graph).endswith("ex:s ex:p ((1) 2) .\n")


@pytest.mark.parametrize("label", ["²x", "x²", "a.²"])
def test_non_ascii_digits_are_not_label_characters(label):
    graph = graph_of(Triple(BlankNode(label), ex("p"), ex("o")))
    with pytest.raises(WriterError):
        write_ntriples(graph)


def test_non_ascii_digit_in_local_name_needs_full_iri():
    assert escape_pn_local("²") is None
    graph = graph_of(Triple(ex("s"), ex("p"), ex("²")), namespaces={"ex": EX})
    assert "<http://example.org/²>" in write_turtle(graph)
