# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from dataclasses import dataclass
import logging
import math

import numpy as np

logger = logging.getLogger(__name__)

GNSS_TIME = 'time (GNSS)'

@dataclass(eq=False)
class AlignedChannel:
    name: str
    units: str
    data: np.ndarray

def estimate_frequency(timestamps):
    n = len(timestamps)
    if n < 2:
        return 0
    span = timestamps[-1] - timestamps[0]
    if span <= 0:
        return 0
    return int(math.floor(n / span + 0.5))

def frequency_label(frequency):
    return 'channels_%dHz' % frequency

def align_channels(channels):
    """Put channels onto the sorted union of their timestamps.

    Positions a channel has no sample for are NaN.  The shared axis is
    appended as an extra channel named 'time (GNSS)'.
    """
    if not channels:
        logger.warning('No channels to align')
        return []
    axis = np.unique(np.concatenate([np.asarray(ch.timestamps, dtype=np.float64)
                                     for ch in channels]))
    aligned = []
    for ch in channels:
        values = np.full(len(axis), np.nan)
        values[np.searchsorted(axis, np.asarray(ch.timestamps, dtype=np.float64))] = \
            np.asarray(ch.data, dtype=np.float64)
        aligned.append(AlignedChannel(ch.short_name, ch.units, values))
    aligned.append(AlignedChannel(GNSS_TIME, 's', axis))
    return aligned

def align_by_frequency(channels):
    groups = {}
    for ch in channels:
        if len(ch.timestamps):
            groups.setdefault(estimate_frequency(ch.timestamps), []).append(ch)
    result = {}
    for frequency, members in groups.items():
        aligned = align_channels(members)
        if aligned:
            result[frequency] = aligned
    return result
