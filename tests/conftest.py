# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import datetime
import struct

import pytest

from vbb.primitives import FIXED_FORMATS, ValueType

CREATED = datetime.datetime(2024, 5, 17, 13, 45, 30)

class VBBBuilder:
    """Writes VBB bytes for tests; the library itself only reads."""

    def __init__(self, big_endian=True, version=2, utc=True, created=CREATED):
        self.big_endian = big_endian
        self.order = '>' if big_endian else '<'
        self.version = version
        self.formats = {}
        self.group_channels = {}
        self.out = bytearray(b'VBB')
        self.out.append(version)
        self.out += struct.pack('>I', (1 if big_endian else 0) | (2 if utc else 0))
        self.datetime(created)
        self.datetime(created)

    def pack(self, fmt, *values):
        self.out += struct.pack(self.order + fmt, *values)

    def u8(self, value):
        self.out.append(value)

    def raw(self, data):
        self.out += data

    def varint(self, n):
        groups = []
        while True:
            groups.append(n & 0x7f)
            n >>= 7
            if not n:
                break
        if self.big_endian:
            groups.reverse()
        for i, g in enumerate(groups):
            self.u8(g | (0x80 if i < len(groups) - 1 else 0))

    def byte_array(self, data):
        self.varint(len(data))
        self.out += data

    def string(self, s):
        data = s.encode('utf-8')
        if not self.big_endian:
            data = data[::-1]
        self.byte_array(data)

    def datetime(self, dt, kind=0):
        if self.version == 1:
            self.pack('H', dt.year)
            self.raw(bytes([dt.month, dt.day, dt.hour, dt.minute, dt.second]))
        else:
            delta = dt - datetime.datetime(1, 1, 1)
            ticks = (delta.days * 86400 + delta.seconds) * 10**7 + delta.microseconds * 10
            self.pack('Q', ticks | (kind << 62))

    def value(self, vt, value):
        if vt in FIXED_FORMATS:
            self.pack(FIXED_FORMATS[vt], value)
        elif vt == ValueType.DATETIME:
            self.datetime(value)
        elif vt == ValueType.STRING:
            self.string(value)
        elif vt == ValueType.BYTE_ARRAY:
            self.byte_array(value)

    def group(self, group_id, name):
        self.u8(5)
        self.u8(group_id)
        self.string(name)

    def dictionary(self, group_id, name, vt, value):
        self.u8(6)
        self.u8(group_id)
        self.string(name)
        self.u8(vt)
        self.value(vt, value)

    def channel(self, channel_id, group_id, short_name, vt, scale=1., offset=0.,
                units='', long_name=None, metadata=''):
        self.u8(7)
        self.pack('H', channel_id)
        self.u8(group_id)
        self.string(short_name)
        self.string(long_name or short_name.title())
        self.string(units)
        self.u8(vt)
        self.pack('d', scale)
        self.pack('d', offset)
        self.string(metadata)
        if vt in FIXED_FORMATS:
            self.formats[channel_id] = FIXED_FORMATS[vt]

    def channel_group(self, group_id, channel_ids):
        self.u8(8)
        self.u8(group_id)
        self.pack('H', len(channel_ids))
        for channel_id in channel_ids:
            self.pack('H', channel_id)
        self.group_channels[group_id] = list(channel_ids)

    def sample(self, group_id, ticks, *values):
        self.u8(9)
        self.pack('I', ticks)
        self.u8(group_id)
        for channel_id, value in zip(self.group_channels[group_id], values, strict=True):
            self.pack(self.formats[channel_id], value)

    def binary_dump(self, block_type, name, vt, value):
        self.u8(13)
        self.pack('H', block_type)
        self.string(name)
        self.u8(vt)
        self.value(vt, value)

    def write(self, path):
        path.write_bytes(bytes(self.out))
        return str(path)

START_TICKS = 432_000_000 # 12:00:00 in 100us ticks

def add_telemetry(b, count=200, first=0):
    # group 1 at 10Hz, group 2 at 2Hz
    for i in range(first, first + count):
        ticks = START_TICKS + i * 1000
        b.sample(1, ticks, 43200 + i * 0.1, i * 10, 515_000_000 + i, 8 + i % 4)
        if i % 5 == 0:
            b.sample(2, ticks, 20.5 + i)
    return b

def telemetry_builder(big_endian=True, version=2, count=200):
    b = VBBBuilder(big_endian=big_endian, version=version)
    b.group(1, 'GPS')
    b.group(2, 'Analog')
    b.dictionary(0, 'Serial Number', ValueType.U32, 123456)
    b.dictionary(0, 'Firmware', ValueType.STRING, '1.2.3')
    b.channel(1, 1, 'time', ValueType.F64, units='s')
    b.channel(2, 1, 'velocity', ValueType.U16, scale=0.01, units='km/h')
    b.channel(3, 1, 'latitude', ValueType.I32, scale=1e-7, units='deg')
    b.channel(4, 2, 'temp', ValueType.F32, offset=-40., units='C')
    b.channel(5, 1, 'satellites', ValueType.U8)
    b.channel_group(1, [1, 2, 3, 5])
    b.channel_group(2, [4])
    b.binary_dump(0, 'EEPROM', ValueType.BYTE_ARRAY, bytes(range(16)))
    return add_telemetry(b, count)

@pytest.fixture
def builder():
    return VBBBuilder

@pytest.fixture
def telemetry():
    return telemetry_builder

@pytest.fixture
def more_telemetry():
    return add_telemetry
