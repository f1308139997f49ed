# Copyright 2019 Joan Puig
# See LICENSE for details


import functools
import math

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Dict, Optional

from VO2.base_types import FieldValue


class Architecture(Enum):
    LittleEndian = 0
    BigEndian = 1


@dataclass(frozen=True)
class FileHeader:
    header_size: int
    protocol_version: int
    profile_version: int
    data_size: int
    data_type: str
    crc: Optional[int]


@dataclass(frozen=True)
class RecordHeader:
    is_normal_header: bool
    is_definition_message: bool
    has_developer_data: bool
    local_message_type: int


@dataclass(frozen=True)
class NormalRecordHeader(RecordHeader):
    pass


@dataclass(frozen=True)
class CompressedTimestampRecordHeader(RecordHeader):
    time_offset: int


@dataclass(frozen=True)
class FieldDefinition:
    number: int
    size: int
    endian_ability: bool
    base_type: int


@dataclass(frozen=True)
class DeveloperFieldDefinition:
    number: int
    size: int
    developer_data_index: int


@dataclass(frozen=True)
class MessageDefinition:
    local_message_type: int
    architecture: Architecture
    global_message_number: int
    field_definitions: Tuple[FieldDefinition, ...]
    developer_field_definitions: Tuple[DeveloperFieldDefinition, ...]

    @property
    def big_endian(self) -> bool:
        return self.architecture == Architecture.BigEndian

    @property
    def content_size(self) -> int:
        return sum(d.size for d in self.field_definitions) + sum(d.size for d in self.developer_field_definitions)


@dataclass(frozen=True)
class Field:
    definition: FieldDefinition
    values: Tuple[FieldValue, ...]

    @property
    def value(self) -> FieldValue:
        return self.values[0] if self.values else None


@dataclass(frozen=True)
class Message:
    """
    A decoded data message
    Field values are addressed by field number, accessors return None for missing and invalid values
    """
    global_message_number: int
    fields: Tuple[Field, ...]
    timestamp: Optional[int] = None

    @functools.lru_cache(1)
    def mapped_fields(self) -> Dict[int, Field]:
        return {field.definition.number: field for field in self.fields}

    def has_field(self, number: int) -> bool:
        return number in self.mapped_fields()

    def get_value(self, number: int, index: int = 0) -> FieldValue:
        field = self.mapped_fields().get(number)
        if field is None or index >= len(field.values):
            return None
        return field.values[index]

    def get_integer(self, number: int, index: int = 0) -> Optional[int]:
        value = self.get_value(number, index)
        if value is None or isinstance(value, (str, bytes)):
            return None
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return int(value)

    def get_short(self, number: int, index: int = 0) -> Optional[int]:
        value = self.get_integer(number, index)
        if value is None:
            return None
        # Two's complement view of the low 16 bits
        value = value & 0xFFFF
        return value - 0x10000 if value >= 0x8000 else value

    def get_byte(self, number: int, index: int = 0) -> Optional[int]:
        value = self.get_value(number, index)
        if isinstance(value, bytes):
            value = value[0] if value else None
        if value is None or isinstance(value, str):
            return None
        # Two's complement view of the low 8 bits
        value = int(value) & 0xFF
        return value - 0x100 if value >= 0x80 else value
