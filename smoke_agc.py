#!/usr/bin/env python3
from __future__ import annotations

import logging
import sys

from agcpy.errors import AgcError, NotFoundError
from agcpy.reader import open_archive


def summarize(path: str, prefetch: bool = True, preview: int = 50):
    with open_archive(path, prefetch=prefetch) as a:
        try:
            print(f"Reference sample: {a.reference_sample()}")
        except NotFoundError:
            print("Reference sample: -")
        samples = a.list_samples()
        print(f"Total samples: {len(samples)}")
        for sample in samples:
            contigs = a.list_contigs(sample)
            print(f"\nSample '{sample}' has {len(contigs)} contigs:")
            if not contigs:
                continue
            contig = contigs[0]
            length = a.contig_length(contig, sample)
            print(f"  Contig '{contig}': {length} bp")
            seq = a.get_sequence(contig, 0, min(preview, length), sample)
            print(f"  Sequence (first {preview}bp): {seq}")


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("usage: smoke_agc.py ARCHIVE.agc", file=sys.stderr)
        sys.exit(2)
    logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")
    try:
        summarize(argv[0])
    except AgcError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    print("smoke: OK")


if __name__ == "__main__":
    main()
