from __future__ import annotations

import logging
import operator
import os
import threading
from typing import Any, Iterator, List, Optional, Tuple, Union

from .constants import (
    C_INT_MAX,
    DEFAULT_WINDOW,
    PREFETCH_OFF,
    PREFETCH_ON,
    SEQ_BUFFER_SLACK,
    TEXT_ENCODING,
)
from .errors import (
    ArchiveClosedError,
    CloseError,
    DecodingError,
    EncodingError,
    ListFailedError,
    NotFoundError,
    OpenError,
    QueryError,
    SequenceFetchFailedError,
)
from .native import NativeLibrary, default_library, ffi

logger = logging.getLogger(__name__)

PathArg = Union[str, "os.PathLike[str]"]

_string_leak_logged = False


def _path_arg(path: str) -> Any:
    raw = os.fsencode(path)
    if b"\x00" in raw:
        raise EncodingError(f"Archive path contains NUL: {path!r}")
    return ffi.new("char[]", raw)


def _text_arg(value: str, what: str) -> Any:
    if not isinstance(value, str):
        raise TypeError(f"{what} must be str, not {type(value).__name__}")
    try:
        raw = value.encode(TEXT_ENCODING)
    except UnicodeEncodeError as exc:
        raise EncodingError(f"{what} is not representable in {TEXT_ENCODING}: {value!r}") from exc
    if b"\x00" in raw:
        raise EncodingError(f"{what} contains NUL: {value!r}")
    return ffi.new("char[]", raw)


def _optional_text_arg(value: Optional[str], what: str) -> Any:
    if value is None:
        return ffi.NULL
    return _text_arg(value, what)


def _decode(raw: bytes, what: str) -> str:
    try:
        return raw.decode(TEXT_ENCODING)
    except UnicodeDecodeError as exc:
        raise DecodingError(f"{what} is not valid {TEXT_ENCODING}: {exc}") from exc


def _check_range(name: str, sample: Optional[str], start: int, end: int) -> None:
    if start < 0 or end < start or end > C_INT_MAX:
        raise SequenceFetchFailedError(
            f"Invalid range [{start}, {end}) for contig: {name}",
            sample=sample,
            name=name,
            start=start,
            end=end,
        )


class AgcArchive:
    """Read-only view of an AGC archive backed by libagc.

    The native handle is owned by this object alone. It is released exactly
    once, by :meth:`close`, by leaving a ``with`` block, or by the garbage
    collector if neither happened. Every native call on the handle runs under
    one lock: libagc does not promise that concurrent queries on a single
    handle are safe, so they are serialized. Open several archives on the
    same file to read in parallel.
    """

    def __init__(self, path: PathArg, prefetch: bool = False, library: Optional[NativeLibrary] = None):
        self.path = os.fspath(path)
        self.prefetch = bool(prefetch)
        self._library = library
        self._native: Optional[NativeLibrary] = None
        self._handle: Any = None
        self._lock = threading.RLock()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
            return
        # Keep the body's exception; a failed close is only logged here
        try:
            self.close()
        except CloseError as close_exc:
            logger.warning("%s (while handling %s)", close_exc, exc_type.__name__)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<AgcArchive {self.path!r} {state}>"

    @property
    def closed(self) -> bool:
        return self._handle is None

    def open(self):
        with self._lock:
            if self._handle is not None:
                return
            c_path = _path_arg(self.path)
            if not os.path.isfile(self.path):
                raise OpenError(self.path)
            native = self._library or default_library()
            flag = PREFETCH_ON if self.prefetch else PREFETCH_OFF
            raw = native.lib.agc_open(c_path, flag)
            if raw == ffi.NULL:
                raise OpenError(self.path)
            self._native = native
            # Released by the collector unless close() detaches it first
            self._handle = ffi.gc(raw, native.lib.agc_close)
            logger.debug("opened %s (prefetch=%s)", self.path, self.prefetch)

    def close(self):
        with self._lock:
            if self._handle is None:
                return
            handle = self._handle
            ffi.gc(handle, None)
            self._handle = None
            status = self._native.lib.agc_close(handle)
            logger.debug("closed %s (status=%d)", self.path, status)
            if status < 0:
                logger.warning("agc_close failed for %s with status %d", self.path, status)
                raise CloseError(self.path, status)

    def _require_open(self) -> Tuple[Any, Any]:
        if self._handle is None:
            raise ArchiveClosedError(f"Archive not open: {self.path}")
        return self._native.lib, self._handle

    # enumeration
    def list_samples(self) -> List[str]:
        """Return sample names in the order the archive stores them."""
        with self._lock:
            lib, handle = self._require_open()
            n_sample = ffi.new("int *")
            arr = lib.agc_list_sample(handle, n_sample)
            if arr == ffi.NULL:
                raise ListFailedError("Failed to list samples")
            return self._copy_string_array(lib, arr, n_sample[0], "sample name")

    def list_contigs(self, sample: Optional[str] = None) -> List[str]:
        """Return contig names of ``sample``.

        Args:
            sample: Sample name. ``None`` leaves the choice of sample to
                libagc (passed through as NULL).

        Raises:
            ListFailedError: libagc could not produce the list.
        """
        with self._lock:
            lib, handle = self._require_open()
            c_sample = _optional_text_arg(sample, "sample name")
            n_ctg = ffi.new("int *")
            arr = lib.agc_list_ctg(handle, c_sample, n_ctg)
            if arr == ffi.NULL:
                raise ListFailedError(f"Failed to list contigs for sample: {sample}", sample=sample)
            return self._copy_string_array(lib, arr, n_ctg[0], "contig name")

    def _copy_string_array(self, lib: Any, arr: Any, count: int, what: str) -> List[str]:
        """
        Copies a foreign ``char **`` list into Python strings and releases it.

        The list is handed back to ``agc_list_destroy`` exactly once, whether
        every entry decodes or not. NULL entries are skipped rather than read.
        """
        try:
            out: List[str] = []
            for i in range(count):
                ptr = arr[i]
                if ptr == ffi.NULL:
                    logger.warning("skipping NULL %s at index %d of %d in %s", what, i, count, self.path)
                    continue
                out.append(_decode(ffi.string(ptr), what))
            return out
        finally:
            status = lib.agc_list_destroy(arr)
            if status < 0:
                logger.warning("agc_list_destroy returned %d", status)

    # metadata
    def sample_count(self) -> int:
        with self._lock:
            lib, handle = self._require_open()
            n = lib.agc_n_sample(handle)
        if n < 0:
            raise QueryError(f"agc_n_sample returned {n} for {self.path}")
        return n

    def contig_count(self, sample: str) -> int:
        with self._lock:
            lib, handle = self._require_open()
            c_sample = _text_arg(sample, "sample name")
            n = lib.agc_n_ctg(handle, c_sample)
        if n < 0:
            raise NotFoundError(f"Sample not found: {sample}", sample=sample)
        return n

    def reference_sample(self) -> str:
        """Return the name of the reference sample.

        Raises:
            NotFoundError: the archive has no reference sample.
        """
        global _string_leak_logged
        with self._lock:
            lib, handle = self._require_open()
            ptr = lib.agc_reference_sample(handle)
            if ptr == ffi.NULL:
                raise NotFoundError("Failed to get reference sample")
            try:
                return _decode(ffi.string(ptr), "reference sample name")
            finally:
                if self._native.has_string_destroy:
                    lib.agc_string_destroy(ptr)
                elif not _string_leak_logged:
                    _string_leak_logged = True
                    logger.debug(
                        "%s lacks agc_string_destroy; reference sample strings are not released",
                        self._native.source,
                    )

    def contig_length(self, name: str, sample: Optional[str] = None) -> int:
        """Return the length in bases of contig ``name``.

        Raises:
            NotFoundError: no such contig (in ``sample``, when given).
        """
        with self._lock:
            lib, handle = self._require_open()
            c_name = _text_arg(name, "contig name")
            c_sample = _optional_text_arg(sample, "sample name")
            length = lib.agc_get_ctg_len(handle, c_sample, c_name)
        if length < 0:
            raise NotFoundError(f"Failed to get contig length for: {name}", sample=sample, name=name)
        return length

    # range extraction
    def get_sequence(self, name: str, start: int, end: int, sample: Optional[str] = None) -> str:
        """Return bases ``[start, end)`` of contig ``name``.

        Args:
            name: Contig name.
            start: 0-based first base.
            end: 0-based end offset, exclusive.
            sample: Sample owning the contig; ``None`` lets libagc resolve it.

        Returns:
            A string of ``end - start`` nucleotide symbols.

        Raises:
            SequenceFetchFailedError: bad range, unknown contig, or engine failure.
            DecodingError: the engine produced bytes that are not text.
        """
        start = operator.index(start)
        end = operator.index(end)
        _check_range(name, sample, start, end)
        requested = end - start
        size = requested + SEQ_BUFFER_SLACK
        with self._lock:
            lib, handle = self._require_open()
            c_name = _text_arg(name, "contig name")
            c_sample = _optional_text_arg(sample, "sample name")
            buf = ffi.new("char[]", size)
            written = lib.agc_get_ctg_seq(handle, c_sample, c_name, start, end, buf)
        if written < 0 or written > requested:
            raise SequenceFetchFailedError(
                f"Failed to get contig sequence for: {name}",
                sample=sample,
                name=name,
                start=start,
                end=end,
            )
        return _decode(ffi.buffer(buf, written)[:], "contig sequence")

    def get_contig(self, name: str, sample: Optional[str] = None) -> str:
        """Return the whole sequence of contig ``name``."""
        with self._lock:
            length = self.contig_length(name, sample)
            return self.get_sequence(name, 0, length, sample)

    def iter_sequence(
        self,
        name: str,
        start: int = 0,
        end: Optional[int] = None,
        sample: Optional[str] = None,
        window: int = DEFAULT_WINDOW,
    ) -> Iterator[str]:
        """Yield bases ``[start, end)`` of a contig in windows of at most ``window`` bases.

        ``end=None`` reads to the end of the contig. Each window is a separate
        extraction, so memory stays bounded by ``window`` for long contigs.
        """
        window = operator.index(window)
        if window <= 0:
            raise ValueError("window must be positive")
        start = operator.index(start)
        if end is None:
            end = self.contig_length(name, sample)
        end = operator.index(end)
        _check_range(name, sample, start, end)
        return self._windows(name, start, end, sample, window)

    def _windows(self, name: str, start: int, end: int, sample: Optional[str], window: int) -> Iterator[str]:
        pos = start
        while pos < end:
            stop = min(pos + window, end)
            yield self.get_sequence(name, pos, stop, sample)
            pos = stop

    def iter_contigs(self, sample: Optional[str] = None) -> Iterator[Tuple[str, str, int]]:
        """Yield ``(sample, contig, length)`` for one sample, or for every sample."""
        samples = [sample] if sample is not None else self.list_samples()
        for s in samples:
            for contig in self.list_contigs(s):
                yield s, contig, self.contig_length(contig, s)


def open_archive(path: PathArg, prefetch: bool = False, library: Optional[NativeLibrary] = None) -> AgcArchive:
    """Open ``path`` and return the archive; use it as a context manager to close it."""
    archive = AgcArchive(path, prefetch=prefetch, library=library)
    archive.open()
    return archive
