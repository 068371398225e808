"""Reading object documents from files or stdin."""

from __future__ import annotations

from typing import IO, Any

import click

from kitctl.domain.serialization import parse_documents


def read_documents(files: tuple[IO[str], ...]) -> list[dict[str, Any]]:
    """Parse every YAML/JSON document from *files* (stdin when empty).

    Raises:
        SerializationError: a file does not hold valid documents.
    """
    sources = files or (click.get_text_stream("stdin"),)
    documents: list[dict[str, Any]] = []
    for source in sources:
        documents.extend(parse_documents(source.read()))
    return documents
