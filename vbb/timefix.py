# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from array import array

import numpy as np

SECONDS_PER_DAY = 86400

def correct_rollovers(values):
    # Every step that fails to move forward is a wrap past midnight and
    # pushes everything after it a day later.  A repeated value counts
    # as a wrap too.
    values = np.asarray(values, dtype=np.float64)
    if len(values) < 2:
        return values.copy()
    days = np.concatenate([[0], np.cumsum(np.diff(values) <= 0)])
    return values + days * SECONDS_PER_DAY

def correct_file(vbb, time_channel='time'):
    for ch in vbb.channels:
        ch.timestamps = array('d', correct_rollovers(ch.timestamps).tobytes())
        # the UTC time of day channel wraps with its timestamps
        if ch.short_name == time_channel:
            ch.data = array('d', correct_rollovers(ch.data).tobytes())
