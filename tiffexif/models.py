"""Data models for EXIF parsing and writing."""

import struct
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Iterator, Optional

from tiffexif.constants import (
    BIG_ENDIAN_MARKER,
    EXIF_TAG_NAMES,
    GPS_TAG_NAMES,
    INTEROP_TAG_NAMES,
    LITTLE_ENDIAN_MARKER,
    TAG_NAMES,
    TIFF_TYPES,
)


class ByteOrder(Enum):
    """Declared byte order of a TIFF blob, valued by its struct prefix."""
    LITTLE = '<'
    BIG = '>'

    @property
    def marker(self) -> bytes:
        return LITTLE_ENDIAN_MARKER if self is ByteOrder.LITTLE else BIG_ENDIAN_MARKER

    @classmethod
    def from_marker(cls, marker: bytes) -> Optional['ByteOrder']:
        """Map b'II' / b'MM' to a byte order; anything else is None."""
        if marker == LITTLE_ENDIAN_MARKER:
            return cls.LITTLE
        if marker == BIG_ENDIAN_MARKER:
            return cls.BIG
        return None


class ValueType(IntEnum):
    """TIFF field types."""
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    SBYTE = 6
    UNDEFINED = 7
    SSHORT = 8
    SLONG = 9
    SRATIONAL = 10
    FLOAT = 11
    DOUBLE = 12
    IFD = 13

    @property
    def size(self) -> int:
        return TIFF_TYPES[self.value][0]


# Fractional types always live out-of-line, whatever their count
_NEVER_INLINE = frozenset({ValueType.RATIONAL, ValueType.SRATIONAL, ValueType.DOUBLE})


def element_size(dtype: int) -> int:
    """Size in bytes of one element of a TIFF type, 0 if the type is unknown."""
    return TIFF_TYPES.get(int(dtype), (0, ''))[0]


def fits_inline(dtype: int, count: int) -> bool:
    """True if `count` values of `dtype` are packed into the 4-byte offset field.

    Shared by the parser and the writer so both sides agree on placement.
    """
    size = element_size(dtype)
    if size == 0 or dtype in _NEVER_INLINE:
        return False
    return size * count <= 4


class ExifSection(Enum):
    """EXIF directories, in the order the writer lays them out."""
    IMAGE = 'Image'
    EXIF = 'Exif'
    INTEROP = 'Interop'
    GPS = 'Gps'

    @property
    def order(self) -> int:
        return _SECTION_ORDER[self]

    @property
    def tag_names(self) -> Dict[int, str]:
        return _SECTION_TAG_NAMES[self]

    def tag_name(self, tag_id: int) -> str:
        return self.tag_names.get(tag_id, f'Tag_{tag_id}')

    @classmethod
    def from_name(cls, name: str) -> 'ExifSection':
        """Case-insensitive lookup; 'photo' is accepted as an alias of Exif."""
        lowered = name.lower()
        if lowered == 'photo':
            return cls.EXIF
        for section in cls:
            if section.value.lower() == lowered:
                return section
        raise ValueError(f'Unknown EXIF section: {name!r}')


_SECTION_ORDER = {section: i for i, section in enumerate(ExifSection)}

_SECTION_TAG_NAMES = {
    ExifSection.IMAGE: TAG_NAMES,
    ExifSection.EXIF: EXIF_TAG_NAMES,
    ExifSection.INTEROP: INTEROP_TAG_NAMES,
    ExifSection.GPS: GPS_TAG_NAMES,
}


class ExifColorSpace(IntEnum):
    """Color space selection for the writer (EXIF tag 40961 codes)."""
    SRGB = 1
    ADOBE_RGB = 2
    UNCALIBRATED = 65535


@dataclass(frozen=True)
class IFDEntry:
    """A single 12-byte IFD record.

    `offset` holds the raw 32-bit value/offset field as a number in the
    blob's declared byte order.
    """
    tag: int
    type: int
    count: int
    offset: int

    @property
    def fits_inline(self) -> bool:
        return fits_inline(self.type, self.count)

    @property
    def byte_length(self) -> int:
        return element_size(self.type) * self.count

    def pack(self, byte_order: ByteOrder = ByteOrder.LITTLE) -> bytes:
        return struct.pack(byte_order.value + 'HHII',
                           self.tag, self.type, self.count, self.offset)


@dataclass(frozen=True)
class ExifPropertyPath:
    """Key of one tag in a collection: (section, tag id)."""
    section: ExifSection
    tag_id: int

    @property
    def name(self) -> str:
        return f'{self.section.value}.{self.section.tag_name(self.tag_id)}'

    def sort_key(self):
        return (self.section.order, self.tag_id)


@dataclass(frozen=True)
class ExifValue:
    """A resolved tag payload.  `data` is always little-endian."""
    type: int
    data: bytes

    def __post_init__(self):
        if not isinstance(self.data, bytes):
            object.__setattr__(self, 'data', bytes(self.data))

    @property
    def count(self) -> int:
        size = element_size(self.type)
        if size == 0:
            raise ValueError(f'Unsupported value type: {self.type}')
        return len(self.data) // size


class ExifValueCollection(Mapping):
    """Read-only map of ExifPropertyPath -> ExifValue produced by the parser."""

    __slots__ = ('_items',)

    def __init__(self, items=None):
        self._items: Dict[ExifPropertyPath, ExifValue] = dict(items or {})

    def __getitem__(self, key: ExifPropertyPath) -> ExifValue:
        return self._items[key]

    def __iter__(self) -> Iterator[ExifPropertyPath]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f'ExifValueCollection({len(self._items)} values)'

    def section(self, section: ExifSection) -> Dict[int, ExifValue]:
        """Tag id -> value for one section (empty if the section is absent)."""
        return {path.tag_id: value for path, value in self._items.items()
                if path.section is section}

    def sections(self):
        """Sections present in the collection, in layout order."""
        present = {path.section for path in self._items}
        return [s for s in ExifSection if s in present]

    def without(self, *paths: ExifPropertyPath) -> 'ExifValueCollection':
        """Return a new collection with the given keys left out."""
        excluded = set(paths)
        return ExifValueCollection(
            (k, v) for k, v in self._items.items() if k not in excluded)

    def sorted_items(self):
        return sorted(self._items.items(), key=lambda kv: kv[0].sort_key())
