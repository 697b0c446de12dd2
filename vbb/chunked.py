# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import logging
import os

from . import base

logger = logging.getLogger(__name__)

CHUNK_LENGTH = 100_000_000 # 100MB sections
HEADER_BUFFER_LENGTH = 100

class ChunkedByteSource:
    """Presents a file as a sequence of bounded in-memory chunks.

    Reads that land within ``buffer_length`` bytes of the end of the
    current chunk are flagged so the caller can flush anything that
    refers to chunk offsets and pull in the next chunk before a record
    gets split.  The unread tail of a chunk is carried over into the
    next one.
    """

    def __init__(self, fname, chunk_length=CHUNK_LENGTH,
                 buffer_length=HEADER_BUFFER_LENGTH):
        self.f = open(fname, 'rb')
        try:
            self.total_length = os.fstat(self.f.fileno()).st_size
            self.chunk_length = chunk_length
            self.buffer_length = buffer_length
            self.zone_set = False
            self.chunk = b''
            self.pos = 0
            self.loaded = 0 # bytes of the file pulled into chunks so far
            self.load_next_chunk()
        except OSError:
            self.f.close()
            raise

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self.f.close()

    @property
    def at_eof(self):
        return self.loaded >= self.total_length

    def tell(self):
        return self.loaded - len(self.chunk) + self.pos

    def set_buffer_zone(self, n):
        self.buffer_length = n
        self.zone_set = True
        # a chunk must be able to hold records outside of the buffer zone
        if self.chunk_length < 4 * n:
            logger.debug('growing chunk length from %d to %d', self.chunk_length, 4 * n)
            self.chunk_length = 4 * n

    def load_next_chunk(self, min_length=0):
        remaining = self.total_length - self.loaded
        if remaining <= 0:
            return False
        tail = self.chunk[self.pos:]
        want = max(self.chunk_length - len(tail), min_length - len(tail), 1)
        more = self.f.read(min(want, remaining))
        if not more: # file shrank underneath us
            self.total_length = self.loaded
            return False
        self.chunk = tail + more
        self.pos = 0
        self.loaded += len(more)
        return True

    def read_bytes(self, n):
        end = self.pos + n
        # Once the whole file is resident there is nothing left to sync
        # with, so the tail is read rather than flagged.
        near_end = not self.at_eof and end >= len(self.chunk) - self.buffer_length
        data = self.chunk[self.pos:end]
        self.pos = min(end, len(self.chunk))
        return data, near_end

    def read_exact(self, n):
        if self.pos + n > len(self.chunk) and not self.at_eof:
            self.load_next_chunk(n)
        data = self.chunk[self.pos:self.pos + n]
        if len(data) < n:
            raise base.TruncatedError('Unexpected end of file at offset %d (wanted %d bytes)'
                                      % (self.tell(), n))
        self.pos += n
        return data

    def advance(self, steps):
        new_pos = self.pos + steps
        if new_pos > len(self.chunk):
            self.pos = len(self.chunk)
            return 'end'
        if new_pos < 0:
            self.pos = 0
            return 'start'
        self.pos = new_pos
        return 'good'
