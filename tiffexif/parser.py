"""EXIF blob parser -- header detection, IFD tree walk, value resolution.

Handles little-endian (II) and big-endian (MM) blobs.  Every resolved
value is normalized to little-endian so the rest of the package never has
to care about the source byte order.
"""

import io
import logging
import struct
from collections import deque
from typing import BinaryIO, Dict, List, NamedTuple, Optional

import numpy as np

from tiffexif.config import CodecConfig
from tiffexif.constants import (
    EXIF_IFD_POINTER_TAG,
    GPS_IFD_POINTER_TAG,
    INTEROP_IFD_POINTER_TAG,
    TIFF_SIGNATURE,
)
from tiffexif.models import (
    ByteOrder,
    ExifPropertyPath,
    ExifSection,
    ExifValue,
    ExifValueCollection,
    IFDEntry,
    ValueType,
)
from tiffexif.reader import EndianBinaryReader

logger = logging.getLogger(__name__)

# Pointer tag -> section of the directory it points at
SUB_IFD_POINTERS: Dict[int, ExifSection] = {
    EXIF_IFD_POINTER_TAG: ExifSection.EXIF,
    GPS_IFD_POINTER_TAG: ExifSection.GPS,
    INTEROP_IFD_POINTER_TAG: ExifSection.INTEROP,
}

# Width at which each multi-byte type is byte-swapped.  Rationals swap
# numerator and denominator independently, hence 4 rather than 8.
_SWAP_WIDTH: Dict[int, int] = {
    ValueType.SHORT: 2,
    ValueType.SSHORT: 2,
    ValueType.LONG: 4,
    ValueType.SLONG: 4,
    ValueType.FLOAT: 4,
    ValueType.IFD: 4,
    ValueType.RATIONAL: 4,
    ValueType.SRATIONAL: 4,
    ValueType.DOUBLE: 8,
}


class TIFFHeader:
    """Parsed 8-byte TIFF header."""
    __slots__ = ('byte_order', 'first_ifd_offset')

    def __init__(self, byte_order: ByteOrder, first_ifd_offset: int):
        self.byte_order = byte_order
        self.first_ifd_offset = first_ifd_offset


class DirectoryRecord(NamedTuple):
    """An IFD entry retained by the walker, tagged with its section."""
    section: ExifSection
    entry: IFDEntry


def detect_byte_order(f: BinaryIO) -> Optional[ByteOrder]:
    """Read the 2-byte order marker. Returns None if it is not II/MM."""
    return ByteOrder.from_marker(f.read(2))


def read_header(f: BinaryIO) -> Optional[TIFFHeader]:
    """Read and validate the TIFF header. Returns None if not TIFF-structured."""
    f.seek(0)
    byte_order = detect_byte_order(f)
    if byte_order is None:
        return None

    data = f.read(6)
    if len(data) < 6:
        return None

    signature, ifd_offset = struct.unpack(byte_order.value + 'HI', data)
    if signature != TIFF_SIGNATURE:
        return None
    return TIFFHeader(byte_order, ifd_offset)


def read_ifd_entry(reader: EndianBinaryReader) -> IFDEntry:
    tag = reader.read_uint16()
    dtype = reader.read_uint16()
    count = reader.read_uint32()
    offset = reader.read_uint32()
    return IFDEntry(tag, dtype, count, offset)


def walk_directories(reader: EndianBinaryReader, first_ifd_offset: int,
                     skipped_tags=None) -> List[DirectoryRecord]:
    """Breadth-first walk of the Image directory and its sub-IFDs.

    Only the first pointer to each sub-IFD is followed.  Pointer tags and
    strip/thumbnail tags are consumed here and never returned.  The
    next-IFD field that trails each directory is not read.
    """
    if skipped_tags is None:
        skipped_tags = CodecConfig.default().skipped_tags

    records: List[DirectoryRecord] = []
    followed = set()
    queue = deque([(ExifSection.IMAGE, first_ifd_offset)])

    while queue:
        section, offset = queue.popleft()

        if offset >= reader.length:
            logger.debug("%s IFD offset %d is past end of data (%d bytes), skipping",
                         section.value, offset, reader.length)
            continue

        reader.position = offset
        try:
            count = reader.read_uint16()
        except EOFError:
            logger.debug("%s IFD at %d: truncated entry count", section.value, offset)
            continue
        if count == 0:
            continue

        for i in range(count):
            try:
                entry = read_ifd_entry(reader)
            except EOFError:
                logger.debug("%s IFD at %d: truncated after %d of %d entries",
                             section.value, offset, i, count)
                break

            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%s: %s", section.value,
                             _describe_entry(entry, section, reader.byte_order))

            child = SUB_IFD_POINTERS.get(entry.tag)
            if child is not None:
                if child not in followed:
                    followed.add(child)
                    queue.append((child, entry.offset))
            elif entry.tag in skipped_tags:
                continue
            else:
                records.append(DirectoryRecord(section, entry))

    return records


def _swap_to_little_endian(data: bytes, dtype: int) -> bytes:
    """Byte-swap big-endian element data to little-endian at its natural width."""
    width = _SWAP_WIDTH.get(dtype)
    if width is None or not data:
        return data
    usable = len(data) - len(data) % width
    swapped = np.frombuffer(data, dtype=np.dtype(f'u{width}'), count=usable // width)
    return swapped.byteswap().tobytes() + data[usable:]


def inline_value_bytes(entry: IFDEntry, byte_order: ByteOrder) -> bytes:
    """Extract an inline value from the 4-byte offset field, as little-endian.

    Big-endian blobs left-justify the payload in the field (first byte at
    bit 24), little-endian blobs right-justify it (first byte at bit 0).
    Re-packing the field in the source order recovers the on-disk bytes
    in both cases.
    """
    if entry.count == 0:
        return b''
    raw = struct.pack(byte_order.value + 'I', entry.offset)[:entry.byte_length]
    if byte_order is ByteOrder.BIG:
        return _swap_to_little_endian(raw, entry.type)
    return raw


def resolve_value(reader: EndianBinaryReader, record: DirectoryRecord,
                  max_value_length: int = None) -> Optional[bytes]:
    """Resolve an entry's value bytes in little-endian order.

    Returns None when the entry must be skipped: empty, oversized,
    unknown type or pointing past the end of the data.
    """
    entry = record.entry
    if entry.fits_inline:
        return inline_value_bytes(entry, reader.byte_order)

    if max_value_length is None:
        max_value_length = CodecConfig.default().max_value_length

    length = entry.byte_length
    if length == 0 or length > max_value_length:
        logger.debug("%s tag %d: skipping value of %d bytes",
                     record.section.value, entry.tag, length)
        return None
    if entry.offset + length > reader.length:
        logger.debug("%s tag %d: value at %d+%d runs past end of data",
                     record.section.value, entry.tag, entry.offset, length)
        return None

    reader.position = entry.offset
    data = reader.read_bytes(length)
    if reader.byte_order is ByteOrder.BIG:
        data = _swap_to_little_endian(data, entry.type)
    return data


def parse_stream(f: BinaryIO, config: Optional[CodecConfig] = None,
                 leave_open: bool = True) -> ExifValueCollection:
    """Parse an EXIF blob from a seekable binary stream.

    Never raises for malformed data: a blob that is not TIFF-structured
    yields an empty collection, bad directories and entries are skipped.
    """
    if config is None:
        config = CodecConfig.default()

    header = read_header(f)
    if header is None:
        logger.debug("No TIFF header found, nothing to parse")
        if not leave_open:
            f.close()
        return ExifValueCollection()

    items: Dict[ExifPropertyPath, ExifValue] = {}
    with EndianBinaryReader(f, header.byte_order, leave_open=leave_open,
                            buffer_size=config.buffer_size) as reader:
        try:
            records = walk_directories(reader, header.first_ifd_offset, config.skipped_tags)
            for record in records:
                data = resolve_value(reader, record, config.max_value_length)
                if data is None:
                    continue
                key = ExifPropertyPath(record.section, record.entry.tag)
                if key in items:
                    continue
                items[key] = ExifValue(ValueType(record.entry.type), data)
        except EOFError:
            # Corrupt data; the caller gets nothing rather than a partial view
            logger.debug("EXIF data ended unexpectedly, discarding parse")
            return ExifValueCollection()

    return ExifValueCollection(items)


def parse(exif_bytes: bytes, config: Optional[CodecConfig] = None) -> ExifValueCollection:
    """Parse a raw EXIF (TIFF-structured) byte string into a value collection."""
    if exif_bytes is None:
        raise TypeError('exif_bytes must not be None')
    return parse_stream(io.BytesIO(exif_bytes), config=config, leave_open=False)


def _describe_entry(entry: IFDEntry, section: ExifSection, byte_order: ByteOrder) -> str:
    name = section.tag_name(entry.tag)
    try:
        type_name = ValueType(entry.type).name
    except ValueError:
        type_name = f'Type_{entry.type}'
    if entry.fits_inline:
        value = inline_value_bytes(entry, byte_order)
        return f'{name} ({entry.tag}) {type_name}[{entry.count}] = {value.hex()}'
    return f'{name} ({entry.tag}) {type_name}[{entry.count}] @ 0x{entry.offset:X}'
