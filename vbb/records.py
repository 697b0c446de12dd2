# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import logging

from . import base
from .primitives import ValueType, value_type

logger = logging.getLogger(__name__)

MAGIC = b'VBB'

# record type tags
GROUP_DEFINITION = 5
DICTIONARY_ITEM = 6
CHANNEL_DEFINITION = 7
CHANNEL_GROUP_DEFINITION = 8
SAMPLE_GROUP = 9
BINARY_DUMP = 13

class RecordParser:
    """Builds the definition tables of a VBBFile from its tagged records.

    ``read_header`` validates the file header and switches the codec to
    the file's byte order.  ``read_definitions`` then dispatches records
    until the first sample group, which is left unread for the sample
    scanner.  The scanner hands any non-sample record it meets later on
    back to ``parse_record``.
    """

    def __init__(self, codec, vbb, on_channel_group=None):
        self.codec = codec
        self.vbb = vbb
        self.on_channel_group = on_channel_group
        self.handlers = {
            GROUP_DEFINITION: self.group_definition,
            DICTIONARY_ITEM: self.dictionary_item,
            CHANNEL_DEFINITION: self.channel_definition,
            CHANNEL_GROUP_DEFINITION: self.channel_group_definition,
            SAMPLE_GROUP: self.sample_group,
            BINARY_DUMP: self.binary_dump,
        }
        self.channel_ids = set()

    def read_header(self):
        codec = self.codec
        if codec.source.read_exact(3) != MAGIC:
            raise base.FormatError('Invalid file format, missing VBB marker')
        version = codec.read_u8()
        if version not in (1, 2):
            raise base.FormatError('Unsupported VBB format version %d' % version)
        # header fields are big endian until the flags say otherwise
        codec.set_byte_order(True)
        flags = codec.read_fixed(ValueType.U32)
        big_endian = bool(flags & 1)
        codec.set_byte_order(big_endian)
        codec.format_version = version
        created = codec.read_datetime()
        modified = codec.read_datetime()
        self.vbb.header = base.FileHeader(big_endian=big_endian,
                                          format_version=version,
                                          utc=bool(flags & 2),
                                          created=created,
                                          modified=modified)
        return self.vbb.header

    def read_definitions(self):
        while True:
            try:
                tag = self.codec.read_u8()
            except base.TruncatedError:
                raise base.TruncatedError('End of file reached before any sample group') from None
            if self.parse_record(tag):
                return

    def parse_record(self, tag):
        handler = self.handlers.get(tag)
        if handler is None:
            raise base.UnknownRecordError(tag, self.codec.source.tell() - 1)
        return bool(handler())

    def group_definition(self):
        group_id = self.codec.read_u8()
        name = self.codec.read_string()
        self.vbb.groups.append(base.GroupDefinition(group_id, name))

    def dictionary_item(self):
        codec = self.codec
        group_id = codec.read_u8()
        name = codec.read_string()
        vt = value_type(codec.read_u8())
        value = codec.read_value(vt)
        self.vbb.dictionary.append(base.DictionaryItem(name, value, vt, group_id))

    def channel_definition(self):
        codec = self.codec
        channel_id = codec.read_fixed(ValueType.U16)
        group_id = codec.read_u8()
        short_name = codec.read_string()
        long_name = codec.read_string()
        units = codec.read_string()
        vt = value_type(codec.read_u8())
        scale = codec.read_fixed(ValueType.F64)
        offset = codec.read_fixed(ValueType.F64)
        metadata = codec.read_string()

        # nominal scales with no exact binary representation
        if round(scale, 3) == 0.001:
            scale = 0.001
        elif round(scale, 1) == 3.6:
            scale = 3.6

        if channel_id in self.channel_ids:
            logger.warning('Duplicate channel ID %d (%s), keeping the first definition',
                           channel_id, short_name)
        self.channel_ids.add(channel_id)
        self.vbb.channels.append(base.ChannelDefinition(channel_id=channel_id,
                                                        group_id=group_id,
                                                        short_name=short_name,
                                                        long_name=long_name,
                                                        units=units,
                                                        value_type=vt,
                                                        scale=scale,
                                                        offset=offset,
                                                        metadata=metadata))

    def channel_group_definition(self):
        codec = self.codec
        group_id = codec.read_u8()
        count = codec.read_fixed(ValueType.U16)
        channel_ids = [codec.read_fixed(ValueType.U16) for _ in range(count)]
        cgroup = base.ChannelGroupDefinition(group_id, channel_ids)
        self.vbb.channel_groups.append(cgroup)
        if self.on_channel_group:
            self.on_channel_group(cgroup)

    def sample_group(self):
        # left for the sample scanner to pick up
        self.codec.source.advance(-1)
        return True

    def binary_dump(self):
        codec = self.codec
        block_type = codec.read_fixed(ValueType.U16)
        name = codec.read_string()
        vt = value_type(codec.read_u8())
        value = codec.read_value(vt)
        self.vbb.binary_dumps.append(base.BinaryDump(name, value, vt, block_type))
