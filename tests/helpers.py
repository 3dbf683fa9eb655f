from rdfgraph import Uri, UriNode

EX = "http://example.org/"
XSD = "http://www.w3.org/2001/XMLSchema#"
RDF = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"

CANONICAL_TURTLE = """\
@base <http://example.org/> .
@prefix rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .
@prefix foaf: <http://xmlns.com/foaf/0.1/> .
<http://www.w3.org/2001/sw/RDFCore/ntriples/> rdf:type foaf:Document ;
        <http://purl.org/dc/terms/title> "N-Triples"@en-US ;
        foaf:maker _:art .
"""


def ex(local: str) -> UriNode:
    return UriNode(Uri(EX + local))


def rdf(local: str) -> UriNode:
    return UriNode(Uri(RDF + local))
