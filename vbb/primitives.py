# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import datetime
import enum
import struct

import numpy as np

from . import base

class ValueType(enum.IntEnum):
    NONE = 0
    U8 = 1
    U16 = 2
    I16 = 3
    U32 = 4
    I32 = 5
    U64 = 6
    I64 = 7
    F32 = 8
    F64 = 9
    TIME = 10 # int32 seconds
    DATETIME = 11
    STRING = 12
    BYTE_ARRAY = 13

# struct/numpy type codes for everything that has a fixed width
FIXED_FORMATS = {
    ValueType.U8: 'B',
    ValueType.U16: 'H',
    ValueType.I16: 'h',
    ValueType.U32: 'I',
    ValueType.I32: 'i',
    ValueType.U64: 'Q',
    ValueType.I64: 'q',
    ValueType.F32: 'f',
    ValueType.F64: 'd',
    ValueType.TIME: 'i',
}

FLOAT_TYPES = (ValueType.F32, ValueType.F64)

TICKS_PER_SECOND = 10_000_000 # 100ns ticks
TICKS_PER_DAY = 86400 * TICKS_PER_SECOND
TICKS_MASK = (1 << 62) - 1
TICKS_EPOCH = datetime.datetime(1, 1, 1)

def value_type(b):
    try:
        return ValueType(b)
    except ValueError:
        raise base.FormatError('Unknown VBB value type %d' % b) from None

def fixed_width(vt):
    try:
        return struct.calcsize('<' + FIXED_FORMATS[vt])
    except KeyError:
        raise base.FormatError('Value type %s has no fixed width' % ValueType(vt).name) from None

def sample_dtype(vt, big_endian):
    return np.dtype(('>' if big_endian else '<') + FIXED_FORMATS[vt])

class Codec:
    """Reads VBB primitives from a ChunkedByteSource in the file's byte order."""

    def __init__(self, source, big_endian=True, format_version=None):
        self.source = source
        self.format_version = format_version
        self.set_byte_order(big_endian)

    def set_byte_order(self, big_endian):
        self.big_endian = big_endian
        order = '>' if big_endian else '<'
        self.structs = {vt: struct.Struct(order + fmt) for vt, fmt in FIXED_FORMATS.items()}

    def read_u8(self):
        return self.source.read_exact(1)[0]

    def read_fixed(self, vt):
        s = self.structs[vt]
        return s.unpack(self.source.read_exact(s.size))[0]

    def read_7bit_int(self):
        # big endian files put the most significant group first
        read = self.source.read_exact
        value = 0
        shift = 0
        while True:
            b = read(1)[0]
            if self.big_endian:
                value = (value << 7) | (b & 0x7f)
            else:
                value |= (b & 0x7f) << shift
                shift += 7
            if not b & 0x80:
                return value

    def read_byte_array(self):
        return self.source.read_exact(self.read_7bit_int())

    def read_string(self):
        data = self.read_byte_array()
        if not self.big_endian:
            data = data[::-1]
        try:
            return data.decode('utf-8')
        except UnicodeDecodeError as err:
            raise base.FormatError('Bad string at offset %d: %s'
                                   % (self.source.tell() - len(data), err)) from err

    def read_datetime(self):
        if self.format_version == 1:
            year = self.read_fixed(ValueType.U16)
            month, day, hour, minute, second = self.source.read_exact(5)
            try:
                value = datetime.datetime(year, month, day, hour, minute, second)
            except ValueError as err:
                raise base.FormatError('Bad datetime: %s' % err) from err
            return base.VBBDateTime(value, base.DateTimeKind.UNSPECIFIED)

        if self.format_version == 2:
            raw = self.read_fixed(ValueType.U64)
            days, day_ticks = divmod(raw & TICKS_MASK, TICKS_PER_DAY)
            seconds, sub_ticks = divmod(day_ticks, TICKS_PER_SECOND)
            try:
                value = TICKS_EPOCH + datetime.timedelta(days=days)
            except OverflowError as err:
                raise base.FormatError('Datetime tick count out of range: %d' % raw) from err
            # time of day comes from the remainder, not the day count
            value = value.replace(hour=seconds // 3600,
                                  minute=seconds // 60 % 60,
                                  second=seconds % 60,
                                  microsecond=sub_ticks // 10)
            kind = raw >> 62
            if kind == 0:
                return base.VBBDateTime(value.replace(tzinfo=datetime.timezone.utc),
                                        base.DateTimeKind.UTC)
            if kind == 2:
                return base.VBBDateTime(value, base.DateTimeKind.LOCAL)
            return base.VBBDateTime(value, base.DateTimeKind.UNSPECIFIED)

        raise base.FormatError('Unsupported VBB format version %s' % self.format_version)

    def read_value(self, vt):
        if vt == ValueType.NONE:
            return None
        if vt in FIXED_FORMATS:
            return self.read_fixed(vt)
        if vt == ValueType.DATETIME:
            return self.read_datetime()
        if vt == ValueType.STRING:
            return self.read_string()
        return self.read_byte_array()
