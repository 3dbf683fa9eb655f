"""Recursive-descent Turtle parser producing a `Graph`."""

from __future__ import annotations

from typing import IO, Iterator

from . import lexer
from .errors import LexicalError, ResolutionError, RdfSyntaxError
from .graph import Graph
from .lexer import Token, TurtleLexer
from .node import BlankNode, LiteralNode, Node, Triple, UriNode
from .uri import Uri, has_scheme, resolve_reference
from .vocab import (
    RDF_FIRST,
    RDF_NIL,
    RDF_REST,
    RDF_TYPE,
    XSD_BOOLEAN,
    XSD_DECIMAL,
    XSD_DOUBLE,
    XSD_INTEGER,
)

NUMERIC_DATATYPES = {
    lexer.INTEGER: XSD_INTEGER,
    lexer.DECIMAL: XSD_DECIMAL,
    lexer.DOUBLE: XSD_DOUBLE,
    lexer.BOOLEAN: XSD_BOOLEAN,
}

DIRECTIVES = (lexer.PREFIX, lexer.BASE, lexer.SPARQL_PREFIX, lexer.SPARQL_BASE)

MAX_NESTING = 128


def _coerce_uri(value: Uri | str | None) -> Uri | None:
    if value is None or isinstance(value, Uri):
        return value
    return Uri(value)


def read_stream(stream: IO, source: str) -> str:
    """Read a whole text or UTF-8 byte stream into a string."""
    data = stream.read()
    if isinstance(data, bytes):
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise LexicalError(source, 1, 1, f"input is not valid UTF-8: {exc}") from exc
    return data.removeprefix("\ufeff")


class TurtleParser:
    """Parser for Turtle documents.

    `decode()` reads the whole document and returns a new `Graph`, or raises
    the first `ParseError` met; no partially filled graph is ever returned.
    """

    def __init__(
        self,
        text: str,
        source: str = "<string>",
        base_uri: Uri | str | None = None,
    ):
        self.text = text
        self.source = source
        self.base_uri = _coerce_uri(base_uri)
        self._tokens: Iterator[Token] = iter(())
        self._peeked: Token | None = None
        self._labels: dict[str, BlankNode] = {}
        self._depth = 0
        self.graph = Graph(self.base_uri)

    @classmethod
    def from_string(cls, text: str, **kwargs) -> TurtleParser:
        return cls(text, **kwargs)

    @classmethod
    def from_reader(
        cls,
        stream: IO,
        source: str | None = None,
        base_uri: Uri | str | None = None,
    ) -> TurtleParser:
        """Create a parser over the full contents of a readable stream."""
        if source is None:
            source = getattr(stream, "name", None) or "<stream>"
        return cls(read_stream(stream, source), source=str(source), base_uri=base_uri)

    def decode(self) -> Graph:
        """Parse the current document and return the populated graph."""
        self.graph = Graph(self.base_uri)
        self._tokens = TurtleLexer(self.text, self.source).tokens()
        self._peeked = None
        self._labels = {}
        self._depth = 0
        while True:
            token = self.peek()
            if token.kind == lexer.EOF:
                return self.graph
            if token.kind in DIRECTIVES:
                self.parse_directive()
                continue
            self.parse_triples()
            self.expect_punct(".", "expected '.' to end triple statement")

    # token cursor

    def peek(self) -> Token:
        if self._peeked is None:
            self._peeked = next(self._tokens)
        return self._peeked

    def next(self) -> Token:
        token = self.peek()
        if token.kind != lexer.EOF:
            self._peeked = None
        return token

    def at_punct(self, value: str) -> bool:
        token = self.peek()
        return token.kind == lexer.PUNCT and token.value == value

    def expect_punct(self, value: str, message: str) -> Token:
        token = self.next()
        if token.kind != lexer.PUNCT or token.value != value:
            self.error(token, f"{message}, found {token.describe()}")
        return token

    def enter_nested(self) -> None:
        """Count an opening `[` or `(`; nesting past `MAX_NESTING` is a syntax error."""
        if self._depth >= MAX_NESTING:
            self.error(self.peek(), f"blank nodes and collections nested deeper than {MAX_NESTING}")
        self._depth += 1

    def error(self, token: Token, message: str):
        raise RdfSyntaxError(self.source, token.line, token.column, message, token)

    def resolution_error(self, token: Token, message: str):
        raise ResolutionError(self.source, token.line, token.column, message)

    # directives

    def parse_directive(self) -> None:
        """Parse `@prefix`, `@base` and their SPARQL-style forms."""
        keyword = self.next()
        if keyword.kind in (lexer.PREFIX, lexer.SPARQL_PREFIX):
            name = self.next()
            if name.kind != lexer.PNAME or name.value:
                self.error(name, f"expected prefix label such as 'ex:' after {keyword.value}")
            iri = self.next()
            if iri.kind != lexer.IRIREF:
                self.error(iri, f"expected IRI in {keyword.value} directive, found {iri.describe()}")
            self.graph.add_namespace(name.prefix or "", self.resolve_iri(iri))
        else:
            iri = self.next()
            if iri.kind != lexer.IRIREF:
                self.error(iri, f"expected IRI in {keyword.value} directive, found {iri.describe()}")
            self.graph.set_base_uri(self.resolve_iri(iri))
        if keyword.kind in (lexer.PREFIX, lexer.BASE):
            self.expect_punct(".", f"expected '.' after {keyword.value} directive")

    # statements

    def parse_triples(self) -> None:
        """Parse one triples statement without its terminating '.'."""
        if self.at_punct("["):
            subject, empty = self.parse_blank_node_property_list()
            if empty or self.can_start_verb():
                self.parse_predicate_object_list(subject)
            return
        subject = self.parse_subject()
        self.parse_predicate_object_list(subject)

    def parse_subject(self) -> UriNode | BlankNode:
        token = self.peek()
        if token.kind in (lexer.IRIREF, lexer.PNAME):
            return UriNode(self.parse_iri())
        if token.kind == lexer.BLANK_NODE_LABEL:
            self.next()
            return self.blank_node_for_label(token.value)
        if self.at_punct("("):
            return self.parse_collection()
        self.error(token, f"expected subject, found {token.describe()}")

    def can_start_verb(self) -> bool:
        return self.peek().kind in (lexer.A, lexer.IRIREF, lexer.PNAME)

    def parse_predicate_object_list(self, subject: UriNode | BlankNode) -> None:
        self.parse_verb_object_list(subject)
        while self.at_punct(";"):
            while self.at_punct(";"):
                self.next()
            if not self.can_start_verb():
                break
            self.parse_verb_object_list(subject)

    def parse_verb_object_list(self, subject: UriNode | BlankNode) -> None:
        predicate = self.parse_verb()
        while True:
            obj = self.parse_object()
            self.graph.add_triple(Triple(subject, predicate, obj))
            if not self.at_punct(","):
                return
            self.next()

    def parse_verb(self) -> UriNode:
        token = self.peek()
        if token.kind == lexer.A:
            self.next()
            return UriNode(RDF_TYPE)
        if token.kind in (lexer.IRIREF, lexer.PNAME):
            return UriNode(self.parse_iri())
        self.error(token, f"expected predicate, found {token.describe()}")

    def parse_object(self) -> Node:
        token = self.peek()
        kind = token.kind
        if kind in (lexer.IRIREF, lexer.PNAME):
            return UriNode(self.parse_iri())
        if kind == lexer.BLANK_NODE_LABEL:
            self.next()
            return self.blank_node_for_label(token.value)
        if kind == lexer.STRING:
            return self.parse_rdf_literal()
        if kind in NUMERIC_DATATYPES:
            self.next()
            return LiteralNode(token.value, datatype=NUMERIC_DATATYPES[kind])
        if self.at_punct("["):
            node, _ = self.parse_blank_node_property_list()
            return node
        if self.at_punct("("):
            return self.parse_collection()
        self.error(token, f"expected object, found {token.describe()}")

    def parse_rdf_literal(self) -> LiteralNode:
        value = self.next().value
        token = self.peek()
        if token.kind == lexer.LANGTAG:
            self.next()
            return LiteralNode(value, language=token.value)
        if token.kind == lexer.DATATYPE_MARK:
            self.next()
            datatype = self.peek()
            if datatype.kind not in (lexer.IRIREF, lexer.PNAME):
                self.error(datatype, f"expected datatype IRI after '^^', found {datatype.describe()}")
            return LiteralNode(value, datatype=self.parse_iri())
        return LiteralNode(value)

    def parse_blank_node_property_list(self) -> tuple[BlankNode, bool]:
        """Parse `[ ... ]`; returns the node and whether the brackets were empty."""
        self.enter_nested()
        self.expect_punct("[", "expected '['")
        node = self.graph.create_blank_node()
        empty = self.at_punct("]")
        if not empty:
            self.parse_predicate_object_list(node)
        self.expect_punct("]", "expected ']' to close blank node property list")
        self._depth -= 1
        return node, empty

    def parse_collection(self) -> UriNode | BlankNode:
        """Parse `( ... )` into an rdf:first/rdf:rest chain ending in rdf:nil."""
        self.enter_nested()
        self.expect_punct("(", "expected '('")
        items: list[Node] = []
        while not self.at_punct(")"):
            token = self.peek()
            if token.kind == lexer.EOF:
                self.error(token, "unterminated collection, expected ')'")
            items.append(self.parse_object())
        self.next()
        self._depth -= 1
        if not items:
            return UriNode(RDF_NIL)

        nodes = [self.graph.create_blank_node() for _ in items]
        for idx, item in enumerate(items):
            rest = nodes[idx + 1] if idx + 1 < len(nodes) else UriNode(RDF_NIL)
            self.graph.add_triple(Triple(nodes[idx], UriNode(RDF_FIRST), item))
            self.graph.add_triple(Triple(nodes[idx], UriNode(RDF_REST), rest))
        return nodes[0]

    # terms

    def blank_node_for_label(self, label: str) -> BlankNode:
        """Map a document label to a graph blank node.

        Labels are kept verbatim unless the graph already minted that id
        for an anonymous node, in which case a fresh node stands in.
        """
        node = self._labels.get(label)
        if node is None:
            if self.graph.has_blank_id(label):
                node = self.graph.create_blank_node()
            else:
                node = self.graph.create_blank_node_with_id(label)
            self._labels[label] = node
        return node

    def parse_iri(self) -> Uri:
        token = self.next()
        if token.kind == lexer.IRIREF:
            return self.resolve_iri(token)
        if token.kind == lexer.PNAME:
            return self.expand_prefixed_name(token)
        self.error(token, f"expected IRI, found {token.describe()}")

    def resolve_iri(self, token: Token) -> Uri:
        """Resolve an IRIREF token against the base in effect."""
        value = token.value
        if has_scheme(value):
            return Uri(value)
        base = self.graph.base_uri()
        if base is None:
            self.resolution_error(token, f"relative IRI <{value}> used with no base URI")
        if not base.is_absolute:
            self.resolution_error(token, f"base URI <{base.value}> is not absolute")
        try:
            return Uri(resolve_reference(base.value, value))
        except ValueError as exc:
            self.resolution_error(token, f"cannot resolve <{value}> against <{base.value}>: {exc}")

    def expand_prefixed_name(self, token: Token) -> Uri:
        prefix = token.prefix or ""
        namespace = self.graph.namespaces().get(prefix)
        if namespace is None:
            self.resolution_error(token, f"undefined prefix '{prefix}:'")
        return Uri(namespace.value + token.value)


def parse_turtle(
    text: str, source: str = "<string>", base_uri: Uri | str | None = None
) -> Graph:
    """Parse Turtle text and return a new graph."""
    return TurtleParser(text, source=source, base_uri=base_uri).decode()
