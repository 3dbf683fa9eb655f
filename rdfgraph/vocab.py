"""RDF and XML Schema vocabulary used by the parsers and writers."""

from __future__ import annotations

from .uri import Uri

RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
XSD_NS = "http://www.w3.org/2001/XMLSchema#"

RDF_TYPE = Uri(f"{RDF_NS}type")
RDF_FIRST = Uri(f"{RDF_NS}first")
RDF_REST = Uri(f"{RDF_NS}rest")
RDF_NIL = Uri(f"{RDF_NS}nil")
RDF_LANG_STRING = Uri(f"{RDF_NS}langString")

XSD_STRING = Uri(f"{XSD_NS}string")
XSD_BOOLEAN = Uri(f"{XSD_NS}boolean")
XSD_INTEGER = Uri(f"{XSD_NS}integer")
XSD_DECIMAL = Uri(f"{XSD_NS}decimal")
XSD_DOUBLE = Uri(f"{XSD_NS}double")
