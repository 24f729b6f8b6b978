"""cffi declarations for the AGC C API and runtime loading of libagc.

Only the read side of ``agc-api.h`` is declared. Every pointer returned by
these functions is foreign-owned; callers in :mod:`agcpy.reader` copy what
they need and release it through the matching destroy call.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, List, Optional

from cffi import FFI

from .config import LibraryConfig
from .errors import LibraryNotFoundError

logger = logging.getLogger(__name__)


CDEF = """
typedef struct agc_t agc_t;

agc_t *agc_open(char *fn, int prefetching);
int agc_close(agc_t *agc);

int agc_get_ctg_len(const agc_t *agc, const char *sample, const char *name);
int agc_get_ctg_seq(const agc_t *agc, const char *sample, const char *name,
                    int start, int end, char *buf);

int agc_n_sample(const agc_t *agc);
int agc_n_ctg(const agc_t *agc, const char *sample);
char *agc_reference_sample(const agc_t *agc);

char **agc_list_sample(const agc_t *agc, int *n_sample);
char **agc_list_ctg(const agc_t *agc, const char *sample, int *n_ctg);

int agc_list_destroy(char **list);
int agc_string_destroy(char *sample);
"""

ffi = FFI()
ffi.cdef(CDEF)


class NativeLibrary:
    """A loaded libagc (or any object exposing the same entry points).

    ``agc_string_destroy`` is missing from some libagc builds; its presence
    is probed once here so the reader knows whether the reference sample
    string can be released.
    """

    def __init__(self, lib: Any, source: str = "<memory>"):
        self.lib = lib
        self.source = source
        try:
            getattr(lib, "agc_string_destroy")
            self.has_string_destroy = True
        except AttributeError:
            self.has_string_destroy = False

    def __repr__(self) -> str:
        return f"NativeLibrary({self.source!r})"


def load_library(config: Optional[LibraryConfig] = None, path: Optional[str] = None) -> NativeLibrary:
    """Load libagc, trying each configured candidate in order.

    Args:
        config: Lookup settings; defaults to :meth:`LibraryConfig.from_env`.
        path: Explicit library path; overrides ``config`` when given.

    Raises:
        LibraryNotFoundError: when no candidate could be loaded.
    """
    if path is not None:
        candidates = [path]
    else:
        candidates = (config or LibraryConfig.from_env()).candidates()
    tried: List[str] = []
    for cand in candidates:
        try:
            lib = ffi.dlopen(cand)
        except OSError as exc:
            logger.debug("dlopen(%s) failed: %s", cand, exc)
            tried.append(cand)
            continue
        logger.debug("loaded libagc from %s", cand)
        return NativeLibrary(lib, cand)
    raise LibraryNotFoundError(tried)


_default_lock = threading.Lock()
_default: Optional[NativeLibrary] = None


def default_library() -> NativeLibrary:
    """Process-wide libagc, loaded from the environment on first use."""
    global _default
    with _default_lock:
        if _default is None:
            _default = load_library()
        return _default
