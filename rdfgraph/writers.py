"""N-Triples and Turtle writers.

Both writers are deterministic for a given graph: triples are emitted in the
graph's insertion order and blank-node labels are written as stored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping

from .errors import WriterError
from .graph import Graph
from .lexer import (
    DECIMAL,
    DOUBLE,
    INTEGER,
    LANGTAG_RE,
    NUMERIC_PATTERNS,
    PN_LOCAL_ESCAPES,
    is_digit,
    is_pn_chars,
    is_pn_chars_base,
    is_pn_chars_u,
)
from .node import NODE_TYPES, BlankNode, LiteralNode, Node, Triple, UriNode
from .uri import Uri
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

_PATTERN_BY_KIND = {kind: regex for regex, kind in NUMERIC_PATTERNS}
SHORTHAND_PATTERNS = {
    XSD_INTEGER: _PATTERN_BY_KIND[INTEGER],
    XSD_DECIMAL: _PATTERN_BY_KIND[DECIMAL],
    XSD_DOUBLE: _PATTERN_BY_KIND[DOUBLE],
}


def escape_string_value(value: str) -> str:
    """Escape a literal value for a double-quoted N-Triples/Turtle string."""
    out: list[str] = []
    for ch in value:
        cp = ord(ch)
        if ch == "\\":
            out.append("\\\\")
        elif ch == '"':
            out.append('\\"')
        elif ch == "\t":
            out.append("\\t")
        elif ch == "\b":
            out.append("\\b")
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            out.append("\\r")
        elif ch == "\f":
            out.append("\\f")
        elif cp < 0x20 or cp in (0x7F, 0xFFFE, 0xFFFF):
            out.append(f"\\u{cp:04X}")
        else:
            out.append(ch)
    return "".join(out)


def encode_iri_ref(value: str) -> str:
    """Encode an IRI as `<...>`, escaping characters IRIREF does not allow."""
    out: list[str] = ["<"]
    for ch in value:
        cp = ord(ch)
        if ch in '<>"{}|^`\\' or cp <= 0x20:
            if cp <= 0xFFFF:
                out.append(f"\\u{cp:04X}")
            else:
                out.append(f"\\U{cp:08X}")
        else:
            out.append(ch)
    out.append(">")
    return "".join(out)


def is_valid_blank_label(label: str) -> bool:
    """Return whether `label` can be written as `_:label`."""
    if not label:
        return False
    first = label[0]
    if not (is_pn_chars_u(first) or is_digit(first)):
        return False
    if label[-1] == ".":
        return False
    return all(ch == "." or is_pn_chars(ch) for ch in label[1:])


def format_blank(node: BlankNode) -> str:
    if not is_valid_blank_label(node.id):
        raise WriterError(f"blank node id {node.id!r} is not a valid label")
    return f"_:{node.id}"


def check_literal(node: LiteralNode) -> None:
    if node.language is not None and node.datatype is not None:
        raise WriterError("literal has both a language tag and a datatype")
    if node.language is not None and not LANGTAG_RE.fullmatch(node.language):
        raise WriterError(f"invalid language tag {node.language!r}")


def format_node_nt(node: Node) -> str:
    """Format an RDF node using N-Triples syntax."""
    if isinstance(node, UriNode):
        return encode_iri_ref(node.uri.value)
    if isinstance(node, BlankNode):
        return format_blank(node)
    if isinstance(node, LiteralNode):
        check_literal(node)
        base = f'"{escape_string_value(node.value)}"'
        if node.language is not None:
            return f"{base}@{node.language}"
        if node.datatype is not None:
            return f"{base}^^{encode_iri_ref(node.datatype.value)}"
        return base
    raise WriterError(f"unsupported node type: {type(node)!r}")


def check_triple(triple: Triple) -> None:
    """Reject triples whose terms break the subject/predicate/object rules."""
    if not isinstance(triple.subject, (UriNode, BlankNode)):
        raise WriterError(f"invalid subject node: {triple.subject!r}")
    if not isinstance(triple.predicate, UriNode):
        raise WriterError(f"invalid predicate node: {triple.predicate!r}")
    if not isinstance(triple.object, NODE_TYPES):
        raise WriterError(f"invalid object node: {triple.object!r}")


class NTriplesWriter:
    """Writes a graph as N-Triples, one statement per line."""

    def iter_lines(self, graph: Graph) -> Iterator[str]:
        """Yield one terminated line per triple."""
        for triple in graph.triples_iter():
            check_triple(triple)
            s = format_node_nt(triple.subject)
            p = format_node_nt(triple.predicate)
            o = format_node_nt(triple.object)
            yield f"{s} {p} {o} .\n"

    def write_to_string(self, graph: Graph) -> str:
        return "".join(self.iter_lines(graph))


@dataclass(frozen=True)
class TurtleWriterOptions:
    """Options controlling Turtle output."""

    emit_base: bool = True
    use_prefixes: bool = True
    lists: str = "auto"
    literal_shorthand: bool = True


def is_valid_prefix_label(prefix: str) -> bool:
    """Return whether a string is a valid Turtle prefix label."""
    if prefix == "":
        return True
    if not is_pn_chars_base(prefix[0]) or prefix[-1] == ".":
        return False
    return all(ch == "." or is_pn_chars(ch) for ch in prefix[1:])


LOCAL_PIECE_RE = re.compile(r"%[0-9A-Fa-f]{2}|.", re.DOTALL)


def escape_pn_local(local: str) -> str | None:
    """Escape text for use as PN_LOCAL, or return None when it cannot be one."""
    pieces: list[str] = []
    for match in LOCAL_PIECE_RE.finditer(local):
        piece = match.group()
        if len(piece) == 3:
            pieces.append(piece)
        elif piece == ":" or (
            is_pn_chars(piece) if pieces else (is_pn_chars_u(piece) or is_digit(piece))
        ):
            pieces.append(piece)
        elif piece == "." and pieces:
            pieces.append(piece)
        elif piece in PN_LOCAL_ESCAPES:
            pieces.append("\\" + piece)
        else:
            return None
    if pieces and pieces[-1] == ".":
        pieces[-1] = "\\."
    return "".join(pieces)


def collect_list_compaction(
    triples: list[Triple],
) -> tuple[dict[BlankNode, list[Node]], set[int]]:
    """Find well-formed RDF lists that can be written as `( ... )`.

    A list cell is a blank node whose only statements are one rdf:first and
    one rdf:rest. A chain of cells qualifies when it ends in rdf:nil, its
    head is referenced exactly once and not through rdf:rest, and every later
    cell is referenced only by the rdf:rest of the cell before it. Lists
    nested inside each other with no referring statement left outside are
    not compacted. Returns the item lists keyed by head and the indices of
    the triples the compact form replaces.
    """
    outgoing: dict[BlankNode, list[int]] = {}
    incoming: dict[BlankNode, list[int]] = {}
    for idx, (subject, _, obj) in enumerate(triples):
        if isinstance(subject, BlankNode):
            outgoing.setdefault(subject, []).append(idx)
        if isinstance(obj, BlankNode):
            incoming.setdefault(obj, []).append(idx)

    def cell(node: Node) -> tuple[int, int] | None:
        if not isinstance(node, BlankNode) or len(outgoing.get(node, ())) != 2:
            return None
        edges = {triples[idx].predicate.uri: idx for idx in outgoing[node]}
        if set(edges) != {RDF_FIRST, RDF_REST}:
            return None
        return edges[RDF_FIRST], edges[RDF_REST]

    def walk(head: BlankNode) -> tuple[list[Node], list[int]] | None:
        items: list[Node] = []
        indices: list[int] = []
        node: Node = head
        while node != UriNode(RDF_NIL):
            found = cell(node)
            if found is None:
                return None
            if node != head and [triples[i].predicate.uri for i in incoming[node]] != [RDF_REST]:
                return None
            first_idx, rest_idx = found
            items.append(triples[first_idx].object)
            indices.extend(found)
            node = triples[rest_idx].object
        return items, indices

    candidates: dict[BlankNode, tuple[list[Node], list[int]]] = {}
    for head in outgoing:
        refs = incoming.get(head, [])
        if len(refs) != 1 or triples[refs[0]].predicate.uri == RDF_REST:
            continue
        walked = walk(head)
        if walked is not None:
            candidates[head] = walked

    owner = {idx: head for head, (_, indices) in candidates.items() for idx in indices}
    compacted: dict[BlankNode, list[Node]] = {}
    removed: set[int] = set()
    for head, (items, indices) in candidates.items():
        seen = {head}
        parent = owner.get(incoming[head][0])
        while parent is not None and parent not in seen:
            seen.add(parent)
            parent = owner.get(incoming[parent][0])
        if parent is None:
            compacted[head] = items
            removed.update(indices)
    return compacted, removed


class TurtleWriter:
    """Writes a graph as Turtle.

    Emits `@base` and `@prefix` directives from the graph, abbreviates IRIs
    with the graph's prefixes, groups statements by subject with `;` and
    `,`, and writes compactable RDF lists as collections.
    """

    def __init__(self, options: TurtleWriterOptions | None = None):
        self.options = options or TurtleWriterOptions()
        if self.options.lists not in ("auto", "off"):
            raise ValueError(f"unsupported lists mode: {self.options.lists}")

    def write_to_string(self, graph: Graph) -> str:
        opts = self.options
        lines: list[str] = []

        base = graph.base_uri()
        if opts.emit_base and base is not None:
            lines.append(f"@base {encode_iri_ref(base.value)} .")

        prefixes: dict[str, Uri] = {}
        if opts.use_prefixes:
            prefixes = {
                prefix: uri
                for prefix, uri in graph.namespaces().items()
                if is_valid_prefix_label(prefix)
            }
            for prefix, uri in prefixes.items():
                lines.append(f"@prefix {prefix}: {encode_iri_ref(uri.value)} .")
        if lines:
            lines.append("")

        triples = list(graph.triples_iter())
        for triple in triples:
            check_triple(triple)
        if opts.lists == "auto":
            list_heads, removed = collect_list_compaction(triples)
        else:
            list_heads, removed = {}, set()
        visible = [triple for idx, triple in enumerate(triples) if idx not in removed]

        lines.extend(self.statement_blocks(visible, prefixes, list_heads))
        if not lines:
            return ""
        return "\n".join(lines) + "\n"

    def statement_blocks(
        self,
        triples: Iterable[Triple],
        prefixes: Mapping[str, Uri],
        list_heads: dict[BlankNode, list[Node]],
    ) -> list[str]:
        """Render grouped subject blocks in first-appearance order."""
        grouped: dict[Node, dict[UriNode, list[Node]]] = {}
        for subject, predicate, obj in triples:
            grouped.setdefault(subject, {}).setdefault(predicate, []).append(obj)

        blocks: list[str] = []
        for subject, predicates in grouped.items():
            subject_text = self.format_node(subject, prefixes, list_heads)
            parts: list[str] = []
            for predicate, objects in predicates.items():
                predicate_text = self.format_predicate(predicate, prefixes)
                object_text = ", ".join(
                    self.format_node(obj, prefixes, list_heads) for obj in objects
                )
                parts.append(f"{predicate_text} {object_text}")
            block = f"{subject_text} {parts[0]}"
            for part in parts[1:]:
                block += f"\n    ; {part}"
            blocks.append(block + " .")
        return blocks

    def format_iri(self, uri: Uri, prefixes: Mapping[str, Uri]) -> str:
        """Write `uri` as a prefixed name when a namespace fits, else as `<...>`."""
        best: tuple[int, str] | None = None
        for prefix, namespace in prefixes.items():
            if not uri.value.startswith(namespace.value):
                continue
            local = escape_pn_local(uri.value[len(namespace.value) :])
            if local is None:
                continue
            if best is None or len(namespace.value) > best[0]:
                best = (len(namespace.value), f"{prefix}:{local}")
        if best is not None:
            return best[1]
        return encode_iri_ref(uri.value)

    def format_predicate(self, predicate: UriNode, prefixes: Mapping[str, Uri]) -> str:
        if predicate.uri == RDF_TYPE:
            return "a"
        return self.format_iri(predicate.uri, prefixes)

    def format_literal(self, node: LiteralNode, prefixes: Mapping[str, Uri]) -> str:
        check_literal(node)
        if self.options.literal_shorthand and node.datatype is not None:
            if node.datatype == XSD_BOOLEAN and node.value in ("true", "false"):
                return node.value
            pattern = SHORTHAND_PATTERNS.get(node.datatype)
            if pattern is not None and pattern.fullmatch(node.value):
                return node.value
        text = f'"{escape_string_value(node.value)}"'
        if node.language is not None:
            return f"{text}@{node.language}"
        if node.datatype is not None:
            return f"{text}^^{self.format_iri(node.datatype, prefixes)}"
        return text

    def format_node(
        self,
        node: Node,
        prefixes: Mapping[str, Uri],
        list_heads: dict[BlankNode, list[Node]],
    ) -> str:
        if isinstance(node, UriNode):
            return self.format_iri(node.uri, prefixes)
        if isinstance(node, BlankNode):
            if node in list_heads:
                inner = " ".join(
                    self.format_node(item, prefixes, list_heads) for item in list_heads[node]
                )
                return f"({inner})"
            return format_blank(node)
        if isinstance(node, LiteralNode):
            return self.format_literal(node, prefixes)
        raise WriterError(f"unsupported node type: {type(node)!r}")


def write_ntriples(graph: Graph) -> str:
    """Serialize `graph` to N-Triples text."""
    return NTriplesWriter().write_to_string(graph)


def write_turtle(graph: Graph, options: TurtleWriterOptions | None = None) -> str:
    """Serialize `graph` to Turtle text."""
    return TurtleWriter(options).write_to_string(graph)
