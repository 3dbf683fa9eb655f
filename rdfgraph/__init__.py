"""Read, build and write RDF graphs in Turtle and N-Triples."""

from .errors import (
    LexicalError,
    ParseError,
    RdfError,
    RdfSyntaxError,
    ResolutionError,
    WriterError,
)
from .graph import Graph
from .node import BlankNode, LiteralNode, Node, Triple, UriNode
from .ntriples import NTriplesParser, parse_ntriples
from .turtle import TurtleParser, parse_turtle
from .uri import Uri
from .writers import (
    NTriplesWriter,
    TurtleWriter,
    TurtleWriterOptions,
    write_ntriples,
    write_turtle,
)

__version__ = "0.3.0"

__all__ = [
    "BlankNode",
    "Graph",
    "LexicalError",
    "LiteralNode",
    "NTriplesParser",
    "NTriplesWriter",
    "Node",
    "ParseError",
    "RdfError",
    "RdfSyntaxError",
    "ResolutionError",
    "Triple",
    "TurtleParser",
    "TurtleWriter",
    "TurtleWriterOptions",
    "Uri",
    "UriNode",
    "WriterError",
    "parse_ntriples",
    "parse_turtle",
    "write_ntriples",
    "write_turtle",
]
