# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from array import array
import logging

import numpy as np

from . import base
from .layout import MAX_GROUPS, RECORD_PREFIX, build_layout, buffer_zone
from .records import SAMPLE_GROUP

logger = logging.getLogger(__name__)

TIMESTAMP_SCALE = 1e-4 # sample timestamps are in 100us ticks

def extract_samples(chunk, instances, layouts, channels, big_endian):
    """Decode every recorded sample group instance in ``chunk``.

    ``instances[group_id]`` holds the chunk offsets of each instance of
    that group.  Channel values are scaled and appended, together with
    the shared group timestamp, to the channel's arrays in file order.
    Returns the number of instances decoded.
    """
    ts_dtype = np.dtype('>u4' if big_endian else '<u4')
    total = 0
    for group_id, positions in enumerate(instances):
        if not positions:
            continue
        layout = layouts[group_id]
        length = layout.length
        starts = np.frombuffer(positions, dtype=np.int64)
        n = len(starts)
        # every record-sized window of the chunk, so gathering the
        # instances is a single copy of n x length bytes
        windows = np.ndarray(buffer=chunk,
                             dtype=np.uint8,
                             shape=(len(chunk) - length + 1, length),
                             strides=(1, 1))
        rows = windows[starts]

        timestamps = np.ndarray(buffer=rows, dtype=ts_dtype, offset=1,
                                strides=(length,), shape=(n,))
        timestamps = (timestamps.astype(np.float64) * TIMESTAMP_SCALE).tobytes()

        for slot in layout.slots:
            ch = channels[slot.channel_index]
            values = np.ndarray(buffer=rows, dtype=slot.dtype, offset=slot.start,
                                strides=(length,), shape=(n,))
            values = values.astype(np.float64) * ch.scale + ch.offset
            ch.timestamps.frombytes(timestamps)
            ch.data.frombytes(values.tobytes())
        total += len(starts)
    return total

class SampleScanner:
    """Walks the sample section of a file one chunk at a time.

    Sample groups are not decoded as they are found; only the offset of
    each instance is noted.  Whenever the source is about to run out of
    chunk, or a non-sample record needs parsing, the noted instances are
    bulk decoded by extract_samples and the offsets are discarded.
    """

    def __init__(self, source, parser, vbb, layouts, progress=None):
        self.source = source
        self.parser = parser
        self.vbb = vbb
        self.layouts = layouts
        self.big_endian = vbb.header.big_endian
        self.instances = [array('q') for _ in range(MAX_GROUPS)]
        self.progress = progress
        self.samples = 0
        parser.on_channel_group = self.add_group

    def add_group(self, cgroup):
        # channel group defined after sampling started
        self.layouts[cgroup.group_id] = build_layout(cgroup, self.vbb.channels,
                                                     self.vbb.channel_index(),
                                                     self.big_endian)
        zone = buffer_zone(self.layouts)
        if zone > self.source.buffer_length:
            self.source.set_buffer_zone(zone)

    def flush(self):
        self.samples += extract_samples(self.source.chunk, self.instances, self.layouts,
                                        self.vbb.channels, self.big_endian)
        for positions in self.instances:
            del positions[:]

    def report_progress(self):
        pos = self.source.tell()
        total = self.source.total_length
        logger.debug('%.0f%%', 100 * pos / max(total, 1))
        if self.progress:
            self.progress(pos, total)

    def scan(self):
        source = self.source
        if not source.zone_set:
            raise RuntimeError('set_buffer_zone() must be called before scanning samples')
        # local variables are faster than attribute lookups
        read = source.read_bytes
        advance = source.advance
        layouts = self.layouts
        instances = self.instances
        while True:
            tag, near_end = read(1)
            if near_end:
                advance(-1)
                self.flush()
                if not source.load_next_chunk():
                    break
                self.report_progress()
                continue
            if not tag:
                break
            if tag[0] != SAMPLE_GROUP:
                # the record may pull in more of the file, so settle up first
                self.flush()
                self.parser.parse_record(tag[0])
                continue

            advance(4)
            group_id, _ = read(1)
            if not group_id:
                logger.warning('Dropping partial sample record at offset %d',
                               source.tell() - RECORD_PREFIX + 1)
                break
            group_id = group_id[0]
            layout = layouts[group_id]
            if layout is None:
                raise base.FormatError('Sample group %d at offset %d has no channel group definition'
                                       % (group_id, source.tell() - RECORD_PREFIX))
            start = source.pos - RECORD_PREFIX
            if start + layout.length > len(source.chunk):
                logger.warning('Dropping partial sample record at offset %d',
                               source.tell() - RECORD_PREFIX)
                break
            instances[group_id].append(start)
            advance(layout.length - RECORD_PREFIX)
        self.flush()
        self.report_progress()
        return self.samples
