# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from array import array
from dataclasses import dataclass, field
import datetime
import enum
import typing

# Sample buffers are array('d') filled straight from numpy buffers, and
# the scanner keeps instance offsets in array('q').  Both assume the
# sizes below.
assert array('d').itemsize == 8
assert array('q').itemsize == 8

class FormatError(ValueError):
    partial = None # decoded prefix, attached by racelogic.read_vbb

class TruncatedError(FormatError):
    pass

class UnknownRecordError(FormatError):
    def __init__(self, tag, offset):
        super().__init__('Unexpected VBB record type %d at offset %d' % (tag, offset))
        self.tag = tag
        self.offset = offset

class DateTimeKind(enum.Enum):
    UTC = 'utc'
    LOCAL = 'local'
    UNSPECIFIED = 'unspecified'

@dataclass(frozen=True)
class VBBDateTime:
    value: datetime.datetime
    kind: DateTimeKind

@dataclass(frozen=True)
class FileHeader:
    big_endian: bool
    format_version: int
    utc: bool
    created: VBBDateTime
    modified: VBBDateTime

@dataclass(eq=False)
class GroupDefinition:
    group_id: int
    name: str

@dataclass(eq=False)
class DictionaryItem:
    name: str
    value: object
    value_type: int
    group_id: int

@dataclass(eq=False)
class BinaryDump:
    name: str
    value: object
    value_type: int
    block_type: int

@dataclass(eq=False)
class ChannelDefinition:
    channel_id: int
    group_id: int
    short_name: str
    long_name: str
    units: str
    value_type: int
    scale: float
    offset: float
    metadata: str
    timestamps: array = field(default_factory=lambda: array('d'), repr=False)
    data: array = field(default_factory=lambda: array('d'), repr=False)

@dataclass(eq=False)
class ChannelGroupDefinition:
    group_id: int
    channel_ids: typing.List[int]

@dataclass(eq=False)
class VBBFile:
    file_name: str
    header: typing.Optional[FileHeader] = None
    groups: typing.List[GroupDefinition] = field(default_factory=list)
    dictionary: typing.List[DictionaryItem] = field(default_factory=list)
    channels: typing.List[ChannelDefinition] = field(default_factory=list)
    channel_groups: typing.List[ChannelGroupDefinition] = field(default_factory=list)
    binary_dumps: typing.List[BinaryDump] = field(default_factory=list)
    halted_at: typing.Optional[int] = None # offset of an unknown record tag

    def channel(self, short_name):
        for ch in self.channels:
            if ch.short_name == short_name:
                return ch
        return None

    def channel_index(self):
        # first definition of an ID wins
        index = {}
        for i, ch in enumerate(self.channels):
            index.setdefault(ch.channel_id, i)
        return index

# Shape shared with the other log decoders

@dataclass(eq=False)
class Channel:
    timecodes: array
    values: array
    dec_pts: int
    name: str
    units: str

@dataclass(eq=False)
class Lap:
    num: int
    start_time: int
    end_time: int

@dataclass(eq=False)
class LogFile:
    channels: typing.Dict[str, Channel]
    laps: typing.List[Lap]
    metadata: typing.Dict[str, str]
    key_channel_map: typing.List[typing.Optional[str]] # speed, lat, long, alt
    file_name: str # move to metadata?
