"""In-memory RDF graph."""

from __future__ import annotations

from collections import Counter
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from .node import BlankNode, LiteralNode, Node, Triple, UriNode
from .uri import Uri

AUTO_PREFIX = "auto"


class Graph:
    """A set of unique triples plus a namespace table and an optional base URI.

    Triples keep their insertion order so that writers are deterministic.
    Blank nodes minted by `create_blank_node` are labelled `autoN` from a
    counter owned by this instance; the counter skips every label the graph
    has already seen, whether minted, requested explicitly, or carried in by
    an added triple.
    """

    def __init__(self, base_uri: Uri | None = None):
        self._base_uri = base_uri
        self._triples: dict[Triple, None] = {}
        self._namespaces: dict[str, Uri] = {}
        self._next_id = 0
        self._blank_ids: set[str] = set()

    def __repr__(self) -> str:
        return f"<Graph base={self._base_uri!r} triples={len(self._triples)}>"

    def __len__(self) -> int:
        return len(self._triples)

    def __iter__(self) -> Iterator[Triple]:
        return iter(self._triples)

    def __contains__(self, triple: object) -> bool:
        return triple in self._triples

    def count(self) -> int:
        """Return the number of triples stored in the graph."""
        return len(self._triples)

    def is_empty(self) -> bool:
        """Return whether the graph holds no triples."""
        return not self._triples

    def base_uri(self) -> Uri | None:
        """Return the base URI used to resolve relative references, if any."""
        return self._base_uri

    def set_base_uri(self, uri: Uri | None) -> None:
        """Replace the base URI; `None` clears it."""
        self._base_uri = uri

    def namespaces(self) -> Mapping[str, Uri]:
        """Return a read-only view of the prefix to namespace table."""
        return MappingProxyType(self._namespaces)

    def add_namespace(self, prefix: str, uri: Uri) -> None:
        """Bind `prefix` to `uri`, replacing any earlier binding. `""` is the default namespace."""
        if not isinstance(uri, Uri):
            raise TypeError(f"namespace must be a Uri, not {type(uri)!r}")
        self._namespaces[prefix] = uri

    def namespace_uri(self, prefix: str) -> Uri:
        """Return the namespace bound to `prefix`; raises `KeyError` when unbound."""
        try:
            return self._namespaces[prefix]
        except KeyError:
            raise KeyError(f"no namespace bound to prefix '{prefix}'") from None

    def create_blank_node(self) -> BlankNode:
        """Return a blank node with a fresh `autoN` label."""
        while True:
            label = f"{AUTO_PREFIX}{self._next_id}"
            self._next_id += 1
            if label not in self._blank_ids:
                self._blank_ids.add(label)
                return BlankNode(label)

    def create_blank_node_with_id(self, id: str) -> BlankNode:
        """Return a blank node with the given label.

        The auto counter is not advanced; the label is remembered so that
        `create_blank_node` never hands it out later.
        """
        node = BlankNode(id)
        self._blank_ids.add(id)
        return node

    def has_blank_id(self, id: str) -> bool:
        """Return whether the label has been minted, requested, or added in a triple."""
        return id in self._blank_ids

    def create_uri_node(self, uri: Uri) -> UriNode:
        """Return a node for `uri`. The graph is not modified."""
        return UriNode(uri)

    def create_literal_node(
        self, value: str, language: str | None = None, datatype: Uri | None = None
    ) -> LiteralNode:
        """Return a literal node. The graph is not modified."""
        return LiteralNode(value, language, datatype)

    def add_triple(self, triple: Triple) -> None:
        """Insert `triple`; adding a triple that is already present is a no-op."""
        if not isinstance(triple, Triple):
            raise TypeError(f"expected a Triple, not {type(triple)!r}")
        if triple in self._triples:
            return
        for node in (triple.subject, triple.object):
            if isinstance(node, BlankNode):
                self._blank_ids.add(node.id)
        self._triples[triple] = None

    def add_triples(self, triples: Iterable[Triple]) -> None:
        """Insert each triple in order, skipping ones already present."""
        for triple in triples:
            self.add_triple(triple)

    def remove_triple(self, triple: Triple) -> None:
        """Delete `triple` if present. Blank labels stay reserved."""
        self._triples.pop(triple, None)

    def triples_iter(self) -> Iterator[Triple]:
        """Return a new iterator over the triples in insertion order."""
        return iter(self._triples)

    def triples_matching(
        self,
        subject: Node | None = None,
        predicate: Node | None = None,
        object: Node | None = None,
    ) -> list[Triple]:
        """Return triples matching the pattern; `None` matches any term."""
        return [
            triple
            for triple in self._triples
            if (subject is None or triple.subject == subject)
            and (predicate is None or triple.predicate == predicate)
            and (object is None or triple.object == object)
        ]

    def triples_with_subject(self, node: Node) -> list[Triple]:
        return self.triples_matching(subject=node)

    def triples_with_predicate(self, node: Node) -> list[Triple]:
        return self.triples_matching(predicate=node)

    def triples_with_object(self, node: Node) -> list[Triple]:
        return self.triples_matching(object=node)

    def is_isomorphic(self, other: Graph) -> bool:
        """Return whether both graphs hold the same triples up to blank-node renaming."""
        return graphs_isomorphic(self._triples, other._triples)


def _blank_nodes(triple: Triple) -> list[BlankNode]:
    return [node for node in (triple.subject, triple.object) if isinstance(node, BlankNode)]


def _initial_colors(triples: Iterable[Triple], palette: dict) -> dict[BlankNode, int]:
    """Colour each blank node by the ground terms around it."""
    context: dict[BlankNode, Counter] = {}
    for subject, predicate, obj in triples:
        if isinstance(subject, BlankNode):
            other = None if isinstance(obj, BlankNode) else obj
            context.setdefault(subject, Counter())[("s", predicate, other)] += 1
        if isinstance(obj, BlankNode):
            other = None if isinstance(subject, BlankNode) else subject
            context.setdefault(obj, Counter())[("o", predicate, other)] += 1
    return {
        node: palette.setdefault(frozenset(counts.items()), len(palette))
        for node, counts in context.items()
    }


def _refine_colors(
    triples: Iterable[Triple], colors: dict[BlankNode, int], palette: dict
) -> dict[BlankNode, int]:
    """Split colour classes by the colours of neighbouring blank nodes."""
    neighbours = {node: Counter() for node in colors}
    for subject, predicate, obj in triples:
        if isinstance(subject, BlankNode) and isinstance(obj, BlankNode):
            neighbours[subject][("s", predicate, colors[obj])] += 1
            neighbours[obj][("o", predicate, colors[subject])] += 1
    return {
        node: palette.setdefault((color, frozenset(neighbours[node].items())), len(palette))
        for node, color in colors.items()
    }


def graphs_isomorphic(left: Iterable[Triple], right: Iterable[Triple]) -> bool:
    """Check two triple collections for equality under a blank-node bijection.

    Ground triples are compared directly. Blank nodes are coloured by their
    surroundings on both sides with a shared palette, and the colours are
    refined until the partition is stable; a depth-first search with an
    explicit stack then pairs nodes of equal colour.
    """
    left_set = set(left)
    right_set = set(right)
    if len(left_set) != len(right_set):
        return False

    left_ground = {t for t in left_set if not _blank_nodes(t)}
    right_ground = {t for t in right_set if not _blank_nodes(t)}
    if left_ground != right_ground:
        return False

    left_blank = [t for t in left_set if t not in left_ground]
    right_blank = {t for t in right_set if t not in right_ground}

    palette: dict = {}
    left_colors = _initial_colors(left_blank, palette)
    right_colors = _initial_colors(right_blank, palette)
    while True:
        if Counter(left_colors.values()) != Counter(right_colors.values()):
            return False
        palette = {}
        refined_left = _refine_colors(left_blank, left_colors, palette)
        refined_right = _refine_colors(right_blank, right_colors, palette)
        if len(palette) == len(set(left_colors.values()) | set(right_colors.values())):
            break
        left_colors, right_colors = refined_left, refined_right

    by_color: dict[int, list[BlankNode]] = {}
    for node, color in right_colors.items():
        by_color.setdefault(color, []).append(node)
    order = sorted(left_colors, key=lambda node: (len(by_color[left_colors[node]]), node.id))

    by_node: dict[BlankNode, list[Triple]] = {}
    for triple in left_blank:
        for node in _blank_nodes(triple):
            by_node.setdefault(node, []).append(triple)

    mapping: dict[BlankNode, BlankNode] = {}
    used: set[BlankNode] = set()

    def mapped(node: Node) -> Node | None:
        if isinstance(node, BlankNode):
            return mapping.get(node)
        return node

    def consistent(node: BlankNode) -> bool:
        for triple in by_node[node]:
            subject = mapped(triple.subject)
            obj = mapped(triple.object)
            if subject is None or obj is None:
                continue
            if Triple(subject, triple.predicate, obj) not in right_blank:
                return False
        return True

    if not order:
        return True
    pending: list[Iterator[BlankNode]] = [iter(by_color[left_colors[order[0]]])]
    while pending:
        node = order[len(pending) - 1]
        if node in mapping:
            used.discard(mapping.pop(node))
        for candidate in pending[-1]:
            if candidate in used:
                continue
            mapping[node] = candidate
            used.add(candidate)
            if consistent(node):
                break
            del mapping[node]
            used.discard(candidate)
        else:
            pending.pop()
            continue
        if len(pending) == len(order):
            return True
        pending.append(iter(by_color[left_colors[order[len(pending)]]]))
    return False
