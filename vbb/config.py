# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import configparser
from dataclasses import dataclass

import dacite

from . import chunked

@dataclass
class DecoderConfig:
    chunk_length: int = chunked.CHUNK_LENGTH
    header_buffer_length: int = chunked.HEADER_BUFFER_LENGTH
    strict: bool = False # raise on unknown record types instead of stopping there
    time_channel: str = 'time'

def _to_bool(value):
    if isinstance(value, bool):
        return value
    try:
        return configparser.ConfigParser.BOOLEAN_STATES[str(value).lower()]
    except KeyError:
        raise ValueError('Not a boolean: %r' % value) from None

def load_config(fname=None, section='vbb'):
    config = configparser.ConfigParser()
    if fname:
        config.read(fname)
    data = dict(config[section]) if config.has_section(section) else {}
    return dacite.from_dict(data_class=DecoderConfig,
                            data=data,
                            config=dacite.Config(type_hooks={int: int, bool: _to_bool},
                                                 strict=True))
