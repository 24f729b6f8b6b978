"""In-process stand-in for libagc used by the unit tests.

It speaks the same C ABI as the real library through the shared cffi ``ffi``
object: handles are opaque ``agc_t *`` values, lists are ``char **`` arrays
of NUL-terminated strings, and sequences are written into the caller's
``char[]`` buffer followed by a terminator. Every list and string it hands
out is tracked until destroyed so tests can assert nothing leaks.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Set

from agcpy.native import NativeLibrary, ffi


SAMPLES: Dict[str, Dict[str, str]] = {
    "ref": {
        "chr1": "ACGT" * 30,
        "chr2": "GATTACA" * 10,
    },
    "HG002#1": {
        "chr1": "TTGCA" * 24,
        "chr2": "CCGGA" * 14,
        "chrM": "ACGTN" * 4,
    },
    "HG002#2": {
        "chr1": "AACCGGTT" * 16,
    },
}


def _addr(ptr) -> int:
    return int(ffi.cast("uintptr_t", ptr))


class FakeAgcLib:
    def __init__(self, samples: Optional[Dict[str, Dict[str, str]]] = None, reference: Optional[str] = "ref"):
        self.samples = samples if samples is not None else SAMPLES
        self.reference = reference
        self.opens: List[tuple] = []
        self.open_handles: Dict[int, str] = {}
        self.close_calls = 0
        self.bad_closes = 0
        self.live_lists: Dict[int, tuple] = {}
        self.live_strings: Dict[int, object] = {}
        self.list_destroys = 0
        self.string_destroys = 0
        self.bad_destroys = 0
        self.buffer_sizes: List[int] = []
        # fault injection
        self.fail_open = False
        self.fail_list = False
        self.null_entries: Set[str] = set()
        self.raw_names: Dict[str, bytes] = {}
        self.seq_bytes: Optional[bytes] = None
        self.seq_status: Optional[int] = None
        self.n_sample_status: Optional[int] = None
        self.seq_gate: Optional[threading.Event] = None
        self.seq_entered = threading.Event()
        self.close_status = 0
        self._next_handle = 0x1000

    # helpers
    def _check(self, agc) -> None:
        addr = _addr(agc)
        if addr not in self.open_handles:
            raise AssertionError(f"use of closed or unknown handle {addr:#x}")

    @staticmethod
    def _text(ptr) -> Optional[str]:
        if ptr == ffi.NULL:
            return None
        return ffi.string(ptr).decode("utf-8")

    def _find(self, sample: Optional[str], name: str) -> Optional[str]:
        if sample is not None:
            return self.samples.get(sample, {}).get(name)
        for contigs in self.samples.values():
            if name in contigs:
                return contigs[name]
        return None

    def _make_list(self, names: List[str], n_out):
        keep = []
        entries = []
        for nm in names:
            if nm in self.null_entries:
                entries.append(ffi.NULL)
                continue
            s = ffi.new("char[]", self.raw_names.get(nm, nm.encode("utf-8")))
            keep.append(s)
            entries.append(s)
        arr = ffi.new("char *[]", entries + [ffi.NULL])
        n_out[0] = len(entries)
        ptr = ffi.cast("char **", arr)
        self.live_lists[_addr(ptr)] = (arr, keep)
        return ptr

    # C API
    def agc_open(self, fn, prefetching):
        path = ffi.string(fn).decode("utf-8")
        self.opens.append((path, prefetching))
        if self.fail_open:
            return ffi.NULL
        addr = self._next_handle
        self._next_handle += 0x10
        self.open_handles[addr] = path
        return ffi.cast("agc_t *", addr)

    def agc_close(self, agc):
        self.close_calls += 1
        addr = _addr(agc)
        if self.open_handles.pop(addr, None) is None:
            self.bad_closes += 1
            return -1
        return self.close_status

    def agc_get_ctg_len(self, agc, sample, name):
        self._check(agc)
        seq = self._find(self._text(sample), self._text(name))
        return -1 if seq is None else len(seq)

    def agc_get_ctg_seq(self, agc, sample, name, start, end, buf):
        self._check(agc)
        if self.seq_gate is not None:
            # hold the call open until the test releases it
            self.seq_entered.set()
            self.seq_gate.wait(5)
            self._check(agc)
        self.buffer_sizes.append(len(buf))
        seq = self._find(self._text(sample), self._text(name))
        if seq is None or start < 0 or end < start or end > len(seq):
            return -1
        data = self.seq_bytes if self.seq_bytes is not None else seq[start:end].encode("ascii")
        if len(data) + 1 > len(buf):
            raise AssertionError(f"buffer of {len(buf)} bytes too small for {len(data)} bases")
        ffi.memmove(buf, data, len(data))
        buf[len(data)] = b"\x00"
        if self.seq_status is not None:
            return self.seq_status
        return len(data)

    def agc_n_sample(self, agc):
        self._check(agc)
        if self.n_sample_status is not None:
            return self.n_sample_status
        return len(self.samples)

    def agc_n_ctg(self, agc, sample):
        self._check(agc)
        contigs = self.samples.get(self._text(sample))
        return -1 if contigs is None else len(contigs)

    def agc_reference_sample(self, agc):
        self._check(agc)
        if self.reference is None:
            return ffi.NULL
        s = ffi.new("char[]", self.raw_names.get(self.reference, self.reference.encode("utf-8")))
        ptr = ffi.cast("char *", s)
        self.live_strings[_addr(ptr)] = s
        return ptr

    def agc_list_sample(self, agc, n_sample):
        self._check(agc)
        if self.fail_list:
            n_sample[0] = 0
            return ffi.NULL
        return self._make_list(list(self.samples), n_sample)

    def agc_list_ctg(self, agc, sample, n_ctg):
        self._check(agc)
        name = self._text(sample)
        if self.fail_list or (name is not None and name not in self.samples):
            n_ctg[0] = 0
            return ffi.NULL
        if name is not None:
            names = list(self.samples[name])
        else:
            names = []
            for contigs in self.samples.values():
                names.extend(c for c in contigs if c not in names)
        return self._make_list(names, n_ctg)

    def agc_list_destroy(self, lst):
        if self.live_lists.pop(_addr(lst), None) is None:
            self.bad_destroys += 1
            return -1
        self.list_destroys += 1
        return 0

    def agc_string_destroy(self, s):
        if self.live_strings.pop(_addr(s), None) is None:
            self.bad_destroys += 1
            return -1
        self.string_destroys += 1
        return 0


class FakeAgcLibWithoutStringDestroy(FakeAgcLib):
    """libagc build that does not export agc_string_destroy."""

    def __getattribute__(self, name):
        if name == "agc_string_destroy":
            raise AttributeError(name)
        return super().__getattribute__(name)


def fake_library(fake: Optional[FakeAgcLib] = None) -> NativeLibrary:
    return NativeLibrary(fake if fake is not None else FakeAgcLib(), "fake")
