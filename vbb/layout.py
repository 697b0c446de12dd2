# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from dataclasses import dataclass
import typing

import numpy as np

from . import base
from .primitives import FIXED_FORMATS, ValueType, fixed_width, sample_dtype

RECORD_PREFIX = 6 # tag, 4 byte timestamp, group id
MAX_GROUPS = 256 # group ids are a single byte

@dataclass(frozen=True)
class ChannelSlot:
    channel_index: int # into VBBFile.channels
    start: int
    end: int
    dtype: np.dtype

@dataclass(frozen=True)
class GroupLayout:
    group_id: int
    slots: typing.Tuple[ChannelSlot, ...]
    length: int

def build_layout(cgroup, channels, index, big_endian):
    pos = RECORD_PREFIX
    slots = []
    for channel_id in cgroup.channel_ids:
        try:
            ci = index[channel_id]
        except KeyError:
            raise base.FormatError('Channel group %d refers to unknown channel ID %d'
                                   % (cgroup.group_id, channel_id)) from None
        vt = channels[ci].value_type
        if vt not in FIXED_FORMATS:
            raise base.FormatError('Channel %s has value type %s, which cannot be sampled'
                                   % (channels[ci].short_name, ValueType(vt).name))
        width = fixed_width(vt)
        slots.append(ChannelSlot(ci, pos, pos + width, sample_dtype(vt, big_endian)))
        pos += width
    return GroupLayout(cgroup.group_id, tuple(slots), pos)

def build_layouts(vbb):
    # direct addressed by group id, a later definition of an id replaces the earlier one
    index = vbb.channel_index()
    layouts = [None] * MAX_GROUPS
    for cgroup in vbb.channel_groups:
        layouts[cgroup.group_id] = build_layout(cgroup, vbb.channels, index,
                                                vbb.header.big_endian)
    return layouts

def buffer_zone(layouts):
    # longest record plus a little slack
    return max((l.length for l in layouts if l), default=RECORD_PREFIX) + 2
