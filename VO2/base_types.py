# Copyright 2019 Joan Puig
# See LICENSE for details


from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np


@dataclass(frozen=True)
class TypeMetadata:
    base_type_number: int
    endian_ability: bool
    base_type_field: int
    invalid_value: Optional[int]
    underlying_bytes: int
    fit_name: str
    numpy_type: Optional[type]


FieldValue = Union[int, float, str, bytes, None]


class FITDecodeError(Exception):
    """
    Base class of every error raised while decoding a FIT file, a file that raises it produces no data
    """
    pass


class FITValueDecodingError(FITDecodeError):
    pass


ENUM = TypeMetadata(0, False, 0x00, 0xFF, 1, 'enum', np.uint8)
SINT8 = TypeMetadata(1, False, 0x01, 0x7F, 1, 'sint8', np.int8)
UINT8 = TypeMetadata(2, False, 0x02, 0xFF, 1, 'uint8', np.uint8)
SINT16 = TypeMetadata(3, True, 0x83, 0x7FFF, 2, 'sint16', np.int16)
UINT16 = TypeMetadata(4, True, 0x84, 0xFFFF, 2, 'uint16', np.uint16)
SINT32 = TypeMetadata(5, True, 0x85, 0x7FFFFFFF, 4, 'sint32', np.int32)
UINT32 = TypeMetadata(6, True, 0x86, 0xFFFFFFFF, 4, 'uint32', np.uint32)
STRING = TypeMetadata(7, False, 0x07, 0x00, 1, 'string', None)
FLOAT32 = TypeMetadata(8, True, 0x88, 0xFFFFFFFF, 4, 'float32', np.float32)
FLOAT64 = TypeMetadata(9, True, 0x89, 0xFFFFFFFFFFFFFFFF, 8, 'float64', np.float64)
UINT8Z = TypeMetadata(10, False, 0x0A, 0x00, 1, 'uint8z', np.uint8)
UINT16Z = TypeMetadata(11, True, 0x8B, 0x0000, 2, 'uint16z', np.uint16)
UINT32Z = TypeMetadata(12, True, 0x8C, 0x00000000, 4, 'uint32z', np.uint32)
BYTE = TypeMetadata(13, False, 0x0D, 0xFF, 1, 'byte', None)
SINT64 = TypeMetadata(14, True, 0x8E, 0x7FFFFFFFFFFFFFFF, 8, 'sint64', np.int64)
UINT64 = TypeMetadata(15, True, 0x8F, 0xFFFFFFFFFFFFFFFF, 8, 'uint64', np.uint64)
UINT64Z = TypeMetadata(16, True, 0x90, 0x0000000000000000, 8, 'uint64z', np.uint64)


BASE_TYPE_NUMBER_TO_METADATA = {
    metadata.base_type_number: metadata for metadata in (
        ENUM, SINT8, UINT8, SINT16, UINT16, SINT32, UINT32, STRING, FLOAT32,
        FLOAT64, UINT8Z, UINT16Z, UINT32Z, BYTE, SINT64, UINT64, UINT64Z,
    )
}


def metadata_for(base_type_number: int, size: int) -> TypeMetadata:
    """
    Returns the metadata used to read a field of the given base type and size
    Unknown base types and sizes that are not a multiple of the base type size are read as raw bytes
    """
    metadata = BASE_TYPE_NUMBER_TO_METADATA.get(base_type_number, BYTE)
    if size % metadata.underlying_bytes != 0:
        return BYTE
    return metadata


def decode_values(metadata: TypeMetadata, raw_bytes: bytes, big_endian: bool) -> Tuple[FieldValue, ...]:
    """
    Decodes the raw bytes of a field into a tuple of python values, one per array element
    Elements holding the invalid value of their base type are decoded as None
    """
    if metadata is STRING:
        text = raw_bytes.split(b'\x00', 1)[0]
        return (text.decode('utf-8', errors='replace') if text else None,)

    if metadata is BYTE:
        return (None if all(b == 0xFF for b in raw_bytes) else bytes(raw_bytes),)

    if len(raw_bytes) % metadata.underlying_bytes != 0:
        raise FITValueDecodingError('{} expected to be multiple of {} bytes, {} received'.format(metadata.fit_name, metadata.underlying_bytes, len(raw_bytes)))

    dtype = np.dtype(metadata.numpy_type).newbyteorder('>' if big_endian else '<')
    array = np.frombuffer(raw_bytes, dtype=dtype)

    if np.issubdtype(dtype, np.floating):
        # Float invalid values are an all ones bit pattern, which is a NaN
        return tuple(None if np.isnan(v) else float(v) for v in array)

    return tuple(None if int(v) == metadata.invalid_value else int(v) for v in array)
