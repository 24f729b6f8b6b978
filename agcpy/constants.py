# Shared library lookup
LIBRARY_NAME = "agc"
LIBRARY_FILENAME = "libagc.so"
ENV_LIBRARY_PATH = "AGC_LIBRARY"
ENV_GUIX_ENVIRONMENT = "GUIX_ENVIRONMENT"

# Text crossing the C boundary (sample/contig names, sequences)
TEXT_ENCODING = "utf-8"

# Bounds of a C int; offsets and lengths are passed as int
C_INT_MAX = 2 ** 31 - 1

# agc_open prefetching flag
PREFETCH_ON = 1
PREFETCH_OFF = 0

# Buffer slack for the terminator agc_get_ctg_seq writes after the bases
SEQ_BUFFER_SLACK = 1

DEFAULT_WINDOW = 1_048_576  # 1 Mbp per iter_sequence step
