# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from array import array
import logging

import numpy as np
import pytest

from vbb import align
from vbb import base

def _channel(name, timestamps, data, units=''):
    return base.ChannelDefinition(channel_id=0, group_id=0, short_name=name, long_name=name,
                                  units=units, value_type=0, scale=1., offset=0., metadata='',
                                  timestamps=array('d', timestamps), data=array('d', data))

def test_align_fills_gaps_with_nan():
    a = _channel('A', [0, 1, 2], [1, 2, 3], units='V')
    b = _channel('B', [0, 2], [10, 30])
    result = align.align_channels([a, b])
    assert [r.name for r in result] == ['A', 'B', align.GNSS_TIME]
    assert result[0].units == 'V'
    np.testing.assert_array_equal(result[0].data, [1, 2, 3])
    np.testing.assert_array_equal(result[1].data, [10, np.nan, 30])
    np.testing.assert_array_equal(result[2].data, [0, 1, 2])
    assert result[2].units == 's'

def test_align_axis_is_sorted_and_unique():
    a = _channel('A', [3, 5], [1, 2])
    b = _channel('B', [1, 3], [7, 8])
    result = align.align_channels([a, b])
    np.testing.assert_array_equal(result[-1].data, [1, 3, 5])
    np.testing.assert_array_equal(result[0].data, [np.nan, 1, 2])
    np.testing.assert_array_equal(result[1].data, [7, 8, np.nan])

def test_align_nothing_warns(caplog):
    with caplog.at_level(logging.WARNING):
        assert align.align_channels([]) == []
    assert 'No channels' in caplog.text

@pytest.mark.parametrize('timestamps, frequency', [
    ([5.], 0),
    ([1., 1.], 0),
    (np.arange(0, 10, 0.1), 10),
    (np.arange(0, 10, 0.01), 100),
    ([0., 1., 2.], 2), # 1.5 rounds up
    ([0., 2.], 1),
])
def test_estimate_frequency(timestamps, frequency):
    assert align.estimate_frequency(timestamps) == frequency

def test_frequency_label():
    assert align.frequency_label(100) == 'channels_100Hz'

def test_align_by_frequency():
    fast = np.arange(0, 10, 0.1)
    slow = np.arange(0, 10, 0.5)
    channels = [_channel('speed', fast, fast * 2),
                _channel('temp', slow, slow),
                _channel('rpm', fast + 0.05, fast),
                _channel('unused', [], [])]
    groups = align.align_by_frequency(channels)
    assert sorted(groups) == [2, 10]
    assert [r.name for r in groups[10]] == ['speed', 'rpm', align.GNSS_TIME]
    assert [r.name for r in groups[2]] == ['temp', align.GNSS_TIME]
    assert len(groups[10][-1].data) == 200
    assert np.isnan(groups[10][0].data).sum() == 100
