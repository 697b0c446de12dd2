# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import logging
import time

import numpy as np

from . import align
from . import base
from . import layout
from . import samples
from . import timefix
from .chunked import ChunkedByteSource
from .config import DecoderConfig
from .primitives import Codec, FLOAT_TYPES
from .records import RecordParser

logger = logging.getLogger(__name__)

def read_vbb(fname, progress=None, config=None):
    """Decode a Racelogic VBB file into a VBBFile.

    An unknown record type ends decoding at that record; whatever was
    decoded before it is kept and ``halted_at`` is set, unless
    ``config.strict`` asks for the error to be raised.  Any FormatError
    that escapes carries the partial result as ``err.partial``.
    """
    config = config or DecoderConfig()
    vbb = base.VBBFile(fname)
    t1 = time.perf_counter()
    try:
        with ChunkedByteSource(fname, config.chunk_length,
                               config.header_buffer_length) as source:
            parser = RecordParser(Codec(source), vbb)
            try:
                parser.read_header()
                parser.read_definitions()
                layouts = layout.build_layouts(vbb)
                source.set_buffer_zone(layout.buffer_zone(layouts))
                samples.SampleScanner(source, parser, vbb, layouts, progress).scan()
            except base.UnknownRecordError as err:
                if config.strict:
                    raise
                logger.warning('%s: %s, no data will be loaded past this point', fname, err)
                vbb.halted_at = err.offset
    except base.FormatError as err:
        err.partial = vbb
        raise
    t2 = time.perf_counter()
    timefix.correct_file(vbb, config.time_channel)
    t3 = time.perf_counter()
    logger.debug('decode %.4f %.4f', t2 - t1, t3 - t2)
    logger.info('%s: %d channels, %d samples', fname, len(vbb.channels),
                sum(len(ch.data) for ch in vbb.channels))
    return vbb

def simplify(vbb):
    return align.align_by_frequency(vbb.channels)

def _dec_pts(ch):
    if ch.value_type in FLOAT_TYPES and ch.scale == 1:
        return 3
    if not ch.scale:
        return 0
    return max(0, int(np.ceil(round(-np.log10(abs(ch.scale)), 6))))

def VBB(fname, progress):
    vbb = read_vbb(fname, progress)
    sampled = [ch for ch in vbb.channels if len(ch.timestamps)]
    start = min((np.min(ch.timestamps) for ch in sampled), default=0.)

    channels = {ch.short_name: base.Channel((np.asarray(ch.timestamps) - start) * 1000,
                                            ch.data,
                                            dec_pts=_dec_pts(ch),
                                            name=ch.short_name,
                                            units=ch.units)
                for ch in sampled}

    last_time = max((np.max(ch.timecodes) for ch in channels.values()), default=0.)
    laps = [base.Lap(0, 0, int(last_time))]

    metadata = {}
    if vbb.header:
        created = vbb.header.created.value
        metadata['Log Date'] = '%02d/%02d/%d' % (created.month, created.day, created.year)
        metadata['Log Time'] = '%02d:%02d:%02d' % (created.hour, created.minute, created.second)
    for item in vbb.dictionary:
        if isinstance(item.value, base.VBBDateTime):
            metadata[item.name] = str(item.value.value)
        elif isinstance(item.value, (str, int, float)):
            metadata[item.name] = str(item.value)

    return base.LogFile(channels,
                        laps,
                        metadata,
                        [name if name in channels else None
                         for name in ('velocity', 'latitude', 'longitude', 'height')],
                        fname)
