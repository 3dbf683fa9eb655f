"""N-Triples parser.

N-Triples is the line-oriented subset of Turtle, so the Turtle tokenizer is
reused and this parser only accepts the token kinds the subset allows:
absolute IRIREFs, blank-node labels and double-quoted short strings.
"""

from __future__ import annotations

from typing import IO, Iterator

from . import lexer
from .errors import RdfSyntaxError
from .graph import Graph
from .lexer import Token, TurtleLexer
from .node import BlankNode, LiteralNode, Node, Triple, UriNode
from .turtle import read_stream
from .uri import Uri, has_scheme


class NTriplesParser:
    """Parser for N-Triples documents; `decode()` returns a new `Graph`."""

    def __init__(self, text: str, source: str = "<string>"):
        self.text = text
        self.source = source
        self._tokens: Iterator[Token] = iter(())
        self._peeked: Token | None = None

    @classmethod
    def from_reader(cls, stream: IO, source: str | None = None) -> NTriplesParser:
        if source is None:
            source = getattr(stream, "name", None) or "<stream>"
        return cls(read_stream(stream, source), source=str(source))

    def decode(self) -> Graph:
        """Parse every statement and return the populated graph."""
        graph = Graph()
        self._tokens = TurtleLexer(self.text, self.source).tokens()
        self._peeked = None
        while self.peek().kind != lexer.EOF:
            subject = self.parse_subject(graph)
            predicate = UriNode(self.parse_iri("predicate"))
            obj = self.parse_object(graph)
            end = self.next()
            if end.kind != lexer.PUNCT or end.value != ".":
                self.error(end, f"expected '.' to end N-Triples statement, found {end.describe()}")
            graph.add_triple(Triple(subject, predicate, obj))
        return graph

    def peek(self) -> Token:
        if self._peeked is None:
            self._peeked = next(self._tokens)
        return self._peeked

    def next(self) -> Token:
        token = self.peek()
        if token.kind != lexer.EOF:
            self._peeked = None
        return token

    def error(self, token: Token, message: str):
        raise RdfSyntaxError(self.source, token.line, token.column, message, token)

    def parse_subject(self, graph: Graph) -> UriNode | BlankNode:
        if self.peek().kind == lexer.BLANK_NODE_LABEL:
            return graph.create_blank_node_with_id(self.next().value)
        return UriNode(self.parse_iri("subject"))

    def parse_object(self, graph: Graph) -> Node:
        token = self.peek()
        if token.kind == lexer.BLANK_NODE_LABEL:
            self.next()
            return graph.create_blank_node_with_id(token.value)
        if token.kind == lexer.STRING:
            return self.parse_literal()
        return UriNode(self.parse_iri("object"))

    def parse_literal(self) -> LiteralNode:
        token = self.next()
        if token.quote != '"':
            self.error(token, "N-Triples literals must use a single pair of double quotes")
        suffix = self.peek()
        if suffix.kind == lexer.LANGTAG:
            self.next()
            return LiteralNode(token.value, language=suffix.value)
        if suffix.kind == lexer.DATATYPE_MARK:
            self.next()
            return LiteralNode(token.value, datatype=self.parse_iri("datatype"))
        return LiteralNode(token.value)

    def parse_iri(self, role: str) -> Uri:
        """Parse an absolute IRIREF; `role` names the position for error messages."""
        token = self.next()
        if token.kind != lexer.IRIREF:
            self.error(token, f"expected IRI as N-Triples {role}, found {token.describe()}")
        if not has_scheme(token.value):
            self.error(token, f"N-Triples requires absolute IRIs, found <{token.value}>")
        return Uri(token.value)


def parse_ntriples(text: str, source: str = "<string>") -> Graph:
    """Parse N-Triples text and return a new graph."""
    return NTriplesParser(text, source=source).decode()
