"""RDF terms and triples."""

from __future__ import annotations

from dataclasses import dataclass

from .uri import Uri


@dataclass(frozen=True)
class UriNode:
    """Node identifying a resource by URI."""

    uri: Uri

    def __post_init__(self) -> None:
        if not isinstance(self.uri, Uri):
            raise TypeError(f"UriNode requires a Uri, not {type(self.uri)!r}")


@dataclass(frozen=True)
class BlankNode:
    """Anonymous resource; the id is only meaningful inside one graph."""

    id: str

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise ValueError("blank node id must be a non-empty string")


@dataclass(frozen=True)
class LiteralNode:
    """RDF literal value with an optional language tag or datatype.

    A literal with neither is a plain string literal. Setting both is
    rejected.
    """

    value: str
    language: str | None = None
    datatype: Uri | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError(f"literal value must be a string, not {type(self.value)!r}")
        if self.language is not None and self.datatype is not None:
            raise ValueError("a literal cannot have both a language tag and a datatype")
        if self.language == "":
            raise ValueError("language tag must not be empty")
        if self.datatype is not None and not isinstance(self.datatype, Uri):
            raise TypeError(f"literal datatype must be a Uri, not {type(self.datatype)!r}")


Node = UriNode | BlankNode | LiteralNode
NODE_TYPES = (UriNode, BlankNode, LiteralNode)


@dataclass(frozen=True)
class Triple:
    """A (subject, predicate, object) statement."""

    subject: UriNode | BlankNode
    predicate: UriNode
    object: Node

    def __post_init__(self) -> None:
        if not isinstance(self.subject, (UriNode, BlankNode)):
            raise TypeError(
                f"triple subject must be a URI or blank node, not {type(self.subject).__name__}"
            )
        if not isinstance(self.predicate, UriNode):
            raise TypeError(
                f"triple predicate must be a URI node, not {type(self.predicate).__name__}"
            )
        if not isinstance(self.object, NODE_TYPES):
            raise TypeError(
                f"triple object must be an RDF node, not {type(self.object).__name__}"
            )

    def __iter__(self):
        yield self.subject
        yield self.predicate
        yield self.object
