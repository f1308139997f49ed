# Copyright 2019 Joan Puig
# See LICENSE for details


from typing import Callable, Collection, Dict, Iterator, Optional, Union

import numpy as np

from VO2.base_types import FITDecodeError, metadata_for, decode_values
from VO2.model import Architecture, CompressedTimestampRecordHeader, DeveloperFieldDefinition, Field, FieldDefinition, FileHeader, Message, MessageDefinition, NormalRecordHeader, RecordHeader


class FITFileContentError(FITDecodeError):
    pass


class FITCRCError(FITFileContentError):
    pass


class FITFileContentWarning(Warning):
    pass


DefinitionCallback = Callable[[MessageDefinition], None]


class CRCCalculator:
    CRC_TABLE = (
        0x0000, 0xCC01, 0xD801, 0x1400, 0xF001, 0x3C00, 0x2800, 0xE401,
        0xA001, 0x6C00, 0x7800, 0xB401, 0x5000, 0x9C01, 0x8801, 0x4400,
    )

    def __init__(self):
        self.current = 0

    def reset(self) -> None:
        self.current = 0

    def new_byte(self, byte: int) -> None:
        crc = self.current

        tmp = CRCCalculator.CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ CRCCalculator.CRC_TABLE[byte & 0xF]

        tmp = CRCCalculator.CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ CRCCalculator.CRC_TABLE[(byte >> 4) & 0xF]

        self.current = crc

    @staticmethod
    def compute(raw_bytes: bytes) -> int:
        calculator = CRCCalculator()
        for byte in raw_bytes:
            calculator.new_byte(byte)
        return calculator.current


class ByteReader:
    bytes_read: int
    crc_calculator: CRCCalculator
    raw_bytes: Union[bytearray, bytes]

    def __init__(self, raw_bytes: bytes):
        self.bytes_read = 0
        self.raw_bytes = raw_bytes
        self.crc_calculator = CRCCalculator()

    def read_bytes(self, count: int) -> bytes:
        if self.bytes_left() < count:
            raise FITFileContentError('Unexpected end of file encountered at byte {}, {} bytes requested, {} left'.format(self.bytes_read, count, self.bytes_left()))

        chunk = bytes(self.raw_bytes[self.bytes_read:self.bytes_read + count])
        self.bytes_read = self.bytes_read + count
        for byte in chunk:
            self.crc_calculator.new_byte(byte)
        return chunk

    def read_byte(self) -> int:
        return self.read_bytes(1)[0]

    def read_double_byte(self, big_endian: bool = False) -> int:
        return int(np.frombuffer(self.read_bytes(2), dtype='>u2' if big_endian else '<u2')[0])

    def read_quad_byte(self, big_endian: bool = False) -> int:
        return int(np.frombuffer(self.read_bytes(4), dtype='>u4' if big_endian else '<u4')[0])

    def bytes_left(self) -> int:
        return len(self.raw_bytes) - self.bytes_read


class Decoder:
    """
    Streams the data messages of a FIT byte stream one at a time

    Message definitions are kept per local message type and handed to the optional definition callback as they appear.
    When message_numbers is given, data messages with any other global message number are read past and never built.
    Streams holding several chained FIT files are decoded file after file.
    """
    TIMESTAMP_FIELD_NUMBER = 253
    COMPRESSED_TIMESTAMP_MASK = 0x1F

    IS_COMPRESSED_TIMESTAMP_HEADER_POSITION = 8 - 1
    IS_DEFINITION_MESSAGE_POSITION = 7 - 1
    HAS_DEVELOPER_DATA_POSITION = 6 - 1
    RESERVED_BIT_POSITION = 5 - 1

    VALID_HEADER_SIZES = (12, 14)
    DATA_TYPE = '.FIT'

    reader: ByteReader
    message_numbers: Optional[Collection[int]]
    on_definition: Optional[DefinitionCallback]
    most_recent_timestamp: Optional[int]
    message_definitions: Dict[int, MessageDefinition]

    def __init__(self, reader: ByteReader, message_numbers: Optional[Collection[int]] = None, on_definition: Optional[DefinitionCallback] = None):
        self.reader = reader
        self.message_numbers = message_numbers
        self.on_definition = on_definition
        self.message_definitions = {}
        self.most_recent_timestamp = None

    def messages(self) -> Iterator[Message]:
        while True:
            self.reader.crc_calculator.reset()
            self.message_definitions = {}
            self.most_recent_timestamp = None

            header = self.decode_file_header()
            yield from self.decode_records(header.data_size)
            self.decode_crc(allow_zero=False)

            if self.reader.bytes_left() == 0:
                return

    def decode_file_header(self) -> FileHeader:
        header_size = self.reader.read_byte()

        if header_size not in Decoder.VALID_HEADER_SIZES:
            raise FITFileContentError('Invalid header size, Expected: 12 or 14, read: {}'.format(header_size))

        protocol_version = self.reader.read_byte()
        profile_version = self.reader.read_double_byte()
        data_size = self.reader.read_quad_byte()
        data_type = self.reader.read_bytes(4).decode('ascii', errors='replace')

        if data_type != Decoder.DATA_TYPE:
            raise FITFileContentError('Invalid header text. Expected: ".FIT", read: "{}"'.format(data_type))

        crc = self.decode_crc(allow_zero=True) if header_size == 14 else None

        return FileHeader(header_size, protocol_version, profile_version, data_size, data_type, crc)

    def decode_records(self, data_size: int) -> Iterator[Message]:
        initial_bytes_read = self.reader.bytes_read

        while self.reader.bytes_read - initial_bytes_read < data_size:
            message = self.decode_record()
            if message is not None:
                yield message

        if self.reader.bytes_read - initial_bytes_read != data_size:
            raise FITFileContentError('Records overrun the declared data size of {} bytes'.format(data_size))

    def decode_record(self) -> Optional[Message]:
        header_byte = self.reader.read_byte()

        if Decoder.bit_get(header_byte, Decoder.IS_COMPRESSED_TIMESTAMP_HEADER_POSITION):
            header = self.decode_compressed_timestamp_record_header(header_byte)
        else:
            header = self.decode_normal_record_header(header_byte)

        if header.is_definition_message:
            self.decode_message_definition(header)
            return None

        return self.decode_message_content(header)

    def decode_normal_record_header(self, header_byte: int) -> NormalRecordHeader:
        is_definition_message = Decoder.bit_get(header_byte, Decoder.IS_DEFINITION_MESSAGE_POSITION)
        has_developer_data = Decoder.bit_get(header_byte, Decoder.HAS_DEVELOPER_DATA_POSITION)

        if Decoder.bit_get(header_byte, Decoder.RESERVED_BIT_POSITION):
            raise FITFileContentError('Reserved bit on record header is 1, expected 0')

        local_message_type = header_byte & 0x0F  # 1st to 4th bits

        return NormalRecordHeader(True, is_definition_message, has_developer_data, local_message_type)

    def decode_compressed_timestamp_record_header(self, header_byte: int) -> CompressedTimestampRecordHeader:
        local_message_type = (header_byte >> 5) & 0x3  # 6th to 7th bits
        time_offset = header_byte & Decoder.COMPRESSED_TIMESTAMP_MASK  # 1st to 5th bits
        return CompressedTimestampRecordHeader(False, False, False, local_message_type, time_offset)

    def decode_field_definition(self) -> FieldDefinition:
        number = self.reader.read_byte()
        size = self.reader.read_byte()
        type_byte = self.reader.read_byte()
        endian_ability = Decoder.bit_get(type_byte, 8 - 1)
        base_type = type_byte & 0x1F  # 1st to 5th bits

        if type_byte & 0x60:
            raise FITFileContentError('Invalid FieldDefinition reserved bits, expected 0, read {}'.format(type_byte & 0x60))

        if size == 0:
            raise FITFileContentError('Field {} is defined with size 0'.format(number))

        return FieldDefinition(number, size, endian_ability, base_type)

    def decode_developer_field_definition(self) -> DeveloperFieldDefinition:
        number = self.reader.read_byte()
        size = self.reader.read_byte()
        developer_data_index = self.reader.read_byte()
        return DeveloperFieldDefinition(number, size, developer_data_index)

    def decode_message_definition(self, header: RecordHeader) -> MessageDefinition:
        reserved_byte = self.reader.read_byte()

        if reserved_byte:
            raise FITFileContentError('Reserved byte after record header is not 0')

        architecture_byte = self.reader.read_byte()
        if architecture_byte not in (a.value for a in Architecture):
            raise FITFileContentError('Invalid architecture {}, expected 0 or 1'.format(architecture_byte))
        architecture = Architecture(architecture_byte)

        global_message_number = self.reader.read_double_byte(architecture == Architecture.BigEndian)

        number_of_fields = self.reader.read_byte()
        field_definitions = tuple([self.decode_field_definition() for _ in range(0, number_of_fields)])

        number_of_developer_fields = self.reader.read_byte() if header.has_developer_data else 0
        developer_field_definitions = tuple([self.decode_developer_field_definition() for _ in range(0, number_of_developer_fields)])

        definition = MessageDefinition(header.local_message_type, architecture, global_message_number, field_definitions, developer_field_definitions)
        self.message_definitions[header.local_message_type] = definition

        if self.on_definition is not None:
            self.on_definition(definition)

        return definition

    def decode_field(self, field_definition: FieldDefinition, big_endian: bool) -> Field:
        raw_bytes = self.reader.read_bytes(field_definition.size)
        metadata = metadata_for(field_definition.base_type, field_definition.size)
        return Field(field_definition, decode_values(metadata, raw_bytes, big_endian))

    def decode_message_content(self, header: RecordHeader) -> Optional[Message]:
        message_definition = self.message_definitions.get(header.local_message_type)

        if not message_definition:
            raise FITFileContentError('Unable to find local message type definition {}'.format(header.local_message_type))

        timestamp = None
        if isinstance(header, CompressedTimestampRecordHeader):
            timestamp = self.resolve_compressed_timestamp(header.time_offset)

        if self.message_numbers is not None and message_definition.global_message_number not in self.message_numbers:
            self.reader.read_bytes(message_definition.content_size)
            self.track_timestamp(message_definition)
            return None

        fields = tuple([self.decode_field(field_definition, message_definition.big_endian) for field_definition in message_definition.field_definitions])

        # Developer fields need their field description messages to be understood, they are read past
        for developer_field_definition in message_definition.developer_field_definitions:
            self.reader.read_bytes(developer_field_definition.size)

        message = Message(message_definition.global_message_number, fields, timestamp)

        field_timestamp = message.get_integer(Decoder.TIMESTAMP_FIELD_NUMBER)
        if field_timestamp is not None:
            self.most_recent_timestamp = field_timestamp
            message = Message(message.global_message_number, message.fields, field_timestamp)

        return message

    def track_timestamp(self, message_definition: MessageDefinition) -> None:
        # A skipped message may still carry the timestamp that later compressed headers are relative to
        if not any(d.number == Decoder.TIMESTAMP_FIELD_NUMBER for d in message_definition.field_definitions):
            return

        start = self.reader.bytes_read - message_definition.content_size
        for field_definition in message_definition.field_definitions:
            if field_definition.number == Decoder.TIMESTAMP_FIELD_NUMBER:
                raw_bytes = self.reader.raw_bytes[start:start + field_definition.size]
                values = decode_values(metadata_for(field_definition.base_type, field_definition.size), bytes(raw_bytes), message_definition.big_endian)
                if values and isinstance(values[0], int):
                    self.most_recent_timestamp = values[0]
                return
            start = start + field_definition.size

    def resolve_compressed_timestamp(self, time_offset: int) -> Optional[int]:
        if self.most_recent_timestamp is None:
            return None

        mask = Decoder.COMPRESSED_TIMESTAMP_MASK
        timestamp = self.most_recent_timestamp + ((time_offset - (self.most_recent_timestamp & mask)) & mask)
        self.most_recent_timestamp = timestamp
        return timestamp

    def decode_crc(self, allow_zero: bool) -> int:
        computed_crc = self.reader.crc_calculator.current
        expected_crc = self.reader.read_double_byte()

        if allow_zero and expected_crc == 0:
            return expected_crc

        if computed_crc != expected_crc:
            raise FITCRCError('Invalid CRC. Expected: {}, computed: {}'.format(expected_crc, computed_crc))

        return expected_crc

    @staticmethod
    def bit_get(byte: int, position: int) -> bool:
        return byte & (1 << position) > 0

    @staticmethod
    def decode_fit_messages(file_name: str, message_numbers: Optional[Collection[int]] = None, on_definition: Optional[DefinitionCallback] = None) -> Iterator[Message]:
        # Reads the binary data of the .FIT file
        try:
            with open(file_name, 'rb') as file:
                file_bytes = file.read()
        except OSError as e:
            raise FITDecodeError('Unable to read {}: {}'.format(file_name, e)) from e

        # Constructs a ByteReader and Decoder object and streams the messages
        decoder = Decoder(ByteReader(file_bytes), message_numbers, on_definition)
        yield from decoder.messages()
