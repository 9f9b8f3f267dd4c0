"""Turn extracted page content into Markdown notes."""

from .notes import (
    ClipResult,
    Note,
    NoteBuilder,
    build_context,
    clean_folder,
    clip,
    coerce_property,
    generate_filename,
    insert_into_note,
)

__all__ = [
    "ClipResult",
    "Note",
    "NoteBuilder",
    "build_context",
    "clean_folder",
    "clip",
    "coerce_property",
    "generate_filename",
    "insert_into_note",
]
