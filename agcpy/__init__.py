"""
agcpy: read-only access to AGC (Assembled Genomes Compressor) archives.

Features:

- Open/close of archives through libagc with deterministic handle release.
- Enumeration of samples and of the contigs inside a sample.
- Contig length and reference sample lookup.
- Random-access extraction of base ranges without decompressing the archive,
  whole or in bounded windows.

libagc is loaded at runtime through cffi; see agcpy.config for how it is
located. All failures surface as subclasses of agcpy.errors.AgcError.
"""

__version__ = "0.1"

from .config import LibraryConfig
from .errors import (
    AgcError,
    ArchiveClosedError,
    CloseError,
    DecodingError,
    EncodingError,
    LibraryNotFoundError,
    ListFailedError,
    NotFoundError,
    OpenError,
    QueryError,
    SequenceFetchFailedError,
)
from .native import NativeLibrary, default_library, load_library
from .reader import AgcArchive, open_archive

__all__ = [
    "AgcArchive",
    "open_archive",
    "LibraryConfig",
    "NativeLibrary",
    "load_library",
    "default_library",
    "AgcError",
    "ArchiveClosedError",
    "CloseError",
    "DecodingError",
    "EncodingError",
    "LibraryNotFoundError",
    "ListFailedError",
    "NotFoundError",
    "OpenError",
    "QueryError",
    "SequenceFetchFailedError",
]
