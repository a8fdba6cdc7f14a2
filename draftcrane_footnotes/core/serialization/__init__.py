"""HTML markup contract for documents carrying footnotes."""

from .html import deserialize_document, serialize_document  # noqa: F401

__all__: list[str] = [
    "deserialize_document",
    "serialize_document",
]
