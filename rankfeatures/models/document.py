"""Immutable tokenized document records fed to the feature pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

Tokens = Tuple[str, ...]


def _freeze_tokens(value: Optional[object], name: str) -> Tokens:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)):
        raise ValueError(f"{name} must be a sequence of tokens, got a raw string")
    if not isinstance(value, Iterable):
        raise ValueError(f"{name} must be a sequence of tokens, got {type(value).__name__}")
    tokens = []
    for token in value:
        if isinstance(token, bytes):
            raise ValueError(f"{name} contains a bytes token; decode tokens upstream")
        tokens.append(str(token))
    return tuple(tokens)


def _freeze_headers(value: Optional[object]) -> Mapping[str, Tuple[Tokens, ...]]:
    if value is None:
        return MappingProxyType({})
    if not isinstance(value, Mapping):
        raise ValueError(f"headers must map tag to token sequences, got {type(value).__name__}")

    headers: Dict[str, Tuple[Tokens, ...]] = {}
    for tag, entries in value.items():
        name = f"headers[{tag!r}]"
        if entries is None:
            headers[str(tag)] = ()
            continue
        if isinstance(entries, (str, bytes)) or not isinstance(entries, Iterable):
            raise ValueError(f"{name} must be a sequence of token sequences")
        entries = list(entries)
        # A flat token list is a single header of that tag.
        if entries and all(isinstance(item, str) for item in entries):
            headers[str(tag)] = (_freeze_tokens(entries, name),)
        else:
            headers[str(tag)] = tuple(_freeze_tokens(item, name) for item in entries)
    return MappingProxyType(headers)


@dataclass(frozen=True)
class Document:
    """One ranked page: query plus tokenized body, title and headers."""

    url: str = ""
    query: Tokens = ()
    body: Tokens = ()
    title: Tokens = ()
    headers: Mapping[str, Tuple[Tokens, ...]] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        object.__setattr__(self, "query", _freeze_tokens(self.query, "query"))
        object.__setattr__(self, "body", _freeze_tokens(self.body, "body"))
        object.__setattr__(self, "title", _freeze_tokens(self.title, "title"))
        object.__setattr__(self, "headers", _freeze_headers(self.headers))

    def header_tokens(self, tag: str) -> Tokens:
        """All tokens of one header tag; empty when the tag is absent."""

        return tuple(token for entry in self.headers.get(tag, ()) for token in entry)

    def all_header_tokens(self) -> Tokens:
        return tuple(
            token for entries in self.headers.values() for entry in entries for token in entry
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "query": list(self.query),
            "body": list(self.body),
            "title": list(self.title),
            "headers": {tag: [list(entry) for entry in entries] for tag, entries in self.headers.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Document":
        url = data.get("url")
        return cls(
            url="" if url is None else str(url),
            query=data.get("query"),
            body=data.get("body"),
            title=data.get("title"),
            headers=data.get("headers"),
        )


def documents_from_records(records: Iterable[Mapping[str, Any]]) -> List[Document]:
    documents: List[Document] = []
    for idx, record in enumerate(records):
        try:
            documents.append(Document.from_dict(record))
        except ValueError as exc:
            raise ValueError(f"record {idx}: {exc}") from exc
    return documents
