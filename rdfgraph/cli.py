"""Command-line converter between Turtle and N-Triples."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .errors import RdfError
from .graph import Graph
from .node import BlankNode, LiteralNode, UriNode
from .ntriples import parse_ntriples
from .turtle import parse_turtle
from .writers import TurtleWriterOptions, write_ntriples, write_turtle

logger = logging.getLogger(__name__)

FORMAT_ALIASES = {
    "nt": "nt",
    "ntriples": "nt",
    "n-triples": "nt",
    "ttl": "turtle",
    "turtle": "turtle",
}

EXTENSION_FORMATS = {
    ".nt": "nt",
    ".ttl": "turtle",
    ".turtle": "turtle",
}


def normalize_format(value: str) -> str:
    """Normalize a CLI format alias to the internal format key."""
    fmt = FORMAT_ALIASES.get(value.strip().lower())
    if fmt is None:
        raise ValueError(f"unsupported format: {value}")
    return fmt


def detect_format_from_path(path: str) -> str | None:
    """Guess the format from the file extension; stdin has none."""
    if path == "-":
        return None
    return EXTENSION_FORMATS.get(Path(path).suffix.lower())


def read_input(path: str) -> str:
    """Read UTF-8 input text from a file or stdin."""
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def write_output(path: str, data: str) -> None:
    """Write UTF-8 output text to a file or stdout."""
    if path == "-":
        sys.stdout.write(data)
        return
    Path(path).write_text(data, encoding="utf-8")


def guess_base_uri(path: str, explicit_base: str | None) -> str | None:
    """Derive the Turtle base URI from CLI arguments and input path."""
    if explicit_base is not None:
        return explicit_base
    if path == "-":
        return None
    return Path(path).resolve().as_uri()


def compute_graph_stats(graph: Graph) -> dict[str, int]:
    """Count unique terms of a parsed graph."""
    subjects = set()
    predicates = set()
    objects = set()
    iris = set()
    blank_nodes = set()
    literals = set()

    for triple in graph.triples_iter():
        subjects.add(triple.subject)
        predicates.add(triple.predicate)
        objects.add(triple.object)
        for node in triple:
            if isinstance(node, UriNode):
                iris.add(node.uri)
            elif isinstance(node, BlankNode):
                blank_nodes.add(node)
            elif isinstance(node, LiteralNode):
                literals.add(node)
                if node.datatype is not None:
                    iris.add(node.datatype)

    return {
        "triples": graph.count(),
        "namespaces": len(graph.namespaces()),
        "subjects_unique": len(subjects),
        "predicates_unique": len(predicates),
        "objects_unique": len(objects),
        "iris_unique": len(iris),
        "blank_nodes_unique": len(blank_nodes),
        "literals_unique": len(literals),
    }


def emit_stats(stats: dict[str, int]) -> None:
    """Print collected graph statistics to stderr."""
    print("stats:", file=sys.stderr)
    for key, value in stats.items():
        print(f"{key}: {value}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the `rdfgraph` command."""
    parser = argparse.ArgumentParser(
        prog="rdfgraph",
        description="Convert RDF graphs between Turtle (.ttl) and N-Triples (.nt).",
        epilog="--lists/--no-prefixes/--no-base apply only when the output is Turtle.",
    )
    parser.add_argument("input", help="Input file path, or '-' for stdin.")
    parser.add_argument(
        "output",
        nargs="?",
        help="Output file path, or '-' for stdout. Optional with --validate-only.",
    )
    parser.add_argument(
        "--from",
        dest="source_format",
        choices=sorted(FORMAT_ALIASES),
        help="Input format. If omitted, inferred from input extension.",
    )
    parser.add_argument(
        "--to",
        dest="target_format",
        choices=sorted(FORMAT_ALIASES),
        help="Output format. If omitted, inferred from output extension.",
    )
    parser.add_argument(
        "--base",
        default=None,
        help="Base URI for Turtle input (default: input file URI).",
    )
    parser.add_argument(
        "--lists",
        choices=["auto", "off"],
        default="auto",
        help="Write RDF lists as ( ... ) collections in Turtle output.",
    )
    parser.add_argument(
        "--no-prefixes",
        action="store_true",
        help="Do not emit @prefix directives or prefixed names in Turtle output.",
    )
    parser.add_argument(
        "--no-base",
        action="store_true",
        help="Do not emit an @base directive in Turtle output.",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Parse and validate input only; do not write output.",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print graph statistics to stderr.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_formats(args: argparse.Namespace) -> tuple[str, str | None]:
    """Resolve and validate source/target formats from CLI arguments."""
    source = normalize_format(args.source_format) if args.source_format else None
    if source is None:
        source = detect_format_from_path(args.input)
    if source is None:
        raise ValueError("could not infer input format; provide --from")

    target = normalize_format(args.target_format) if args.target_format else None
    if target is None and args.output:
        target = detect_format_from_path(args.output)

    if args.validate_only:
        return source, target
    if args.output is None:
        raise ValueError("output path is required unless --validate-only")
    if target is None:
        raise ValueError("could not infer output format; provide --to or output extension")
    return source, target


def load_graph(text: str, source_format: str, source_name: str, base_uri: str | None) -> Graph:
    """Parse `text` in the given source format."""
    if source_format == "nt":
        return parse_ntriples(text, source=source_name)
    if source_format == "turtle":
        return parse_turtle(text, source=source_name, base_uri=base_uri)
    raise ValueError(f"unsupported source format: {source_format}")


def dump_graph(graph: Graph, target_format: str, options: TurtleWriterOptions) -> str:
    """Serialize `graph` in the given target format."""
    if target_format == "nt":
        return write_ntriples(graph)
    if target_format == "turtle":
        return write_turtle(graph, options)
    raise ValueError(f"unsupported target format: {target_format}")


def main(argv: list[str] | None = None) -> int:
    """Run the `rdfgraph` command-line interface."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    try:
        source, target = resolve_formats(args)
        options = TurtleWriterOptions(
            emit_base=not args.no_base,
            use_prefixes=not args.no_prefixes,
            lists=args.lists,
        )
        source_name = args.input if args.input != "-" else "<stdin>"
        base_uri = guess_base_uri(args.input, args.base)

        text = read_input(args.input)
        logger.debug("read %d characters from %s", len(text), source_name)
        graph = load_graph(text, source, source_name, base_uri)
        logger.info("parsed %d triples from %s", graph.count(), source_name)

        if not args.validate_only:
            output = dump_graph(graph, target, options)
            write_output(args.output, output)
            logger.info("wrote %s output to %s", target, args.output)

        if args.stats:
            emit_stats(compute_graph_stats(graph))
        return 0
    except (RdfError, ValueError, OSError) as exc:
        logger.debug("conversion failed", exc_info=True)
        parser.exit(status=1, message=f"Error: {exc}\n")
