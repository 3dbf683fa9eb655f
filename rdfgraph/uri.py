"""URI values and RFC 3986 reference resolution.

References are split with the regular expression of RFC 3986 Appendix B, so
any string is accepted: no component is validated, decoded or stripped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import NamedTuple

SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*:")

REFERENCE_RE = re.compile(
    r"(?:([A-Za-z][A-Za-z0-9+.\-]*):)?(?://([^/?#]*))?([^?#]*)(?:\?([^#]*))?(?:#(.*))?",
    re.DOTALL,
)


def has_scheme(value: str) -> bool:
    """Return whether `value` starts with a URI scheme such as `http:`."""
    return SCHEME_RE.match(value) is not None


class Reference(NamedTuple):
    """Components of a URI reference; absent components are `None`."""

    scheme: str | None
    authority: str | None
    path: str
    query: str | None
    fragment: str | None

    @classmethod
    def split(cls, value: str) -> Reference:
        return cls(*REFERENCE_RE.fullmatch(value).groups(default=None))

    def unsplit(self) -> str:
        parts = []
        if self.scheme is not None:
            parts.append(f"{self.scheme}:")
        if self.authority is not None:
            parts.append(f"//{self.authority}")
        parts.append(self.path)
        if self.query is not None:
            parts.append(f"?{self.query}")
        if self.fragment is not None:
            parts.append(f"#{self.fragment}")
        return "".join(parts)


def remove_dot_segments(path: str) -> str:
    """Drop `.` and `..` segments from a path (RFC 3986 §5.2.4)."""
    if "." not in path:
        return path
    rooted = path.startswith("/")
    segments = path.split("/")
    if rooted:
        segments = segments[1:]
    kept: list[str] = []
    for position, segment in enumerate(segments, 1):
        final = position == len(segments)
        if segment == "..":
            if kept:
                kept.pop()
        elif segment != ".":
            kept.append(segment)
            continue
        if final:
            kept.append("")
    joined = "/".join(kept)
    return f"/{joined}" if rooted else joined


def merge_paths(base: Reference, ref_path: str) -> str:
    """Merge a relative-path reference with the base path (RFC 3986 §5.2.3)."""
    if base.authority is not None and base.path == "":
        return f"/{ref_path}"
    directory, slash, _ = base.path.rpartition("/")
    return f"{directory}{slash}{ref_path}"


def resolve_reference(base: str, ref: str) -> str:
    """Resolve the reference `ref` against the absolute URI `base`.

    Absolute references are returned unchanged. Otherwise this is the
    transform of RFC 3986 §5.2.2; explicit empty query and fragment markers
    in `ref` survive.
    """
    if has_scheme(ref):
        return ref
    b = Reference.split(base)
    r = Reference.split(ref)
    if r.authority is not None:
        authority, path, query = r.authority, remove_dot_segments(r.path), r.query
    elif r.path == "":
        authority, path = b.authority, b.path
        query = b.query if r.query is None else r.query
    else:
        authority, query = b.authority, r.query
        if r.path.startswith("/"):
            path = remove_dot_segments(r.path)
        else:
            path = remove_dot_segments(merge_paths(b, r.path))
    return Reference(b.scheme, authority, path, query, r.fragment).unsplit()


@dataclass(frozen=True)
class Uri:
    """An absolute or relative URI reference.

    The value is kept verbatim: no percent-decoding or case-folding is
    applied, so equality is plain string equality.
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError(f"URI value must be a string, not {type(self.value)!r}")
        if not self.value:
            raise ValueError("URI must not be empty")

    def __str__(self) -> str:
        return self.value

    @property
    def scheme(self) -> str:
        """Return the URI scheme, or an empty string for relative references."""
        match = SCHEME_RE.match(self.value)
        return match.group()[:-1] if match else ""

    @property
    def is_absolute(self) -> bool:
        """Return whether the URI carries a scheme."""
        return has_scheme(self.value)

    def resolve(self, base: Uri) -> Uri:
        """Resolve this reference against `base`; absolute URIs are returned unchanged."""
        if self.is_absolute:
            return self
        if not base.is_absolute:
            raise ValueError(f"cannot resolve against relative base URI '{base.value}'")
        return Uri(resolve_reference(base.value, self.value))
