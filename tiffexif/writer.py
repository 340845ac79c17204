"""EXIF blob writer -- tag preprocessing, two-pass layout, serialization.

Output is always little-endian with the Image directory at offset 8,
followed by the Exif, Interop and GPS directories in that order.  Each
directory is its 2-byte entry count, the 12-byte entries sorted by tag,
a zero next-IFD pointer and then the values too large for the offset
field, each starting on an even offset.
"""

import logging
import struct
from dataclasses import dataclass, replace
from typing import Dict, Mapping, Optional, Tuple

from tiffexif.config import CodecConfig
from tiffexif.constants import (
    DEFAULT_EXIF_VERSION,
    DEFAULT_GPS_VERSION,
    DEFAULT_INTEROP_VERSION,
    EXIF_IFD_POINTER_TAG,
    FIRST_IFD_OFFSET,
    GPS_IFD_POINTER_TAG,
    IFD_ENTRY_SIZE,
    INTEROP_IFD_POINTER_TAG,
    INTEROP_INDEX_ADOBE_RGB,
    INTEROP_INDEX_SRGB,
    LITTLE_ENDIAN_MARKER,
    ORIENTATION_TOP_LEFT,
    TAG_COLOR_SPACE,
    TAG_EXIF_VERSION,
    TAG_GPS_VERSION_ID,
    TAG_IMAGE_LENGTH,
    TAG_IMAGE_WIDTH,
    TAG_INTEROP_INDEX,
    TAG_INTEROP_VERSION,
    TAG_ORIENTATION,
    TAG_PIXEL_X_DIMENSION,
    TAG_PIXEL_Y_DIMENSION,
    TIFF_SIGNATURE,
)
from tiffexif.helpers import encode_long, encode_short
from tiffexif.models import (
    ExifColorSpace,
    ExifPropertyPath,
    ExifSection,
    ExifValue,
    IFDEntry,
    ValueType,
    element_size,
    fits_inline,
)

logger = logging.getLogger(__name__)

# Section tag maps: section -> {tag_id: value}
TagDictionary = Dict[ExifSection, Dict[int, ExifValue]]

# Pointer tag -> (parent section, child section)
_POINTER_TAGS = (
    (EXIF_IFD_POINTER_TAG, ExifSection.IMAGE, ExifSection.EXIF),
    (INTEROP_IFD_POINTER_TAG, ExifSection.EXIF, ExifSection.INTEROP),
    (GPS_IFD_POINTER_TAG, ExifSection.IMAGE, ExifSection.GPS),
)

_MAX_UINT32 = 0xFFFFFFFF


@dataclass(frozen=True)
class DirectoryLayout:
    """Placement of one directory: its sorted entries and byte range."""
    section: ExifSection
    start_offset: int
    entries: Tuple[IFDEntry, ...]
    next_available_offset: int

    @property
    def next_ifd_pointer_offset(self) -> int:
        return self.start_offset + 2 + IFD_ENTRY_SIZE * len(self.entries)

    def with_pointer(self, tag: int, offset: int) -> 'DirectoryLayout':
        """Return a copy with the pointer entry `tag` set to `offset`."""
        entries = tuple(
            IFDEntry(tag, ValueType.LONG, 1, offset) if e.tag == tag else e
            for e in self.entries)
        return replace(self, entries=entries)


@dataclass(frozen=True)
class LayoutPlan:
    """Directory placements in write order, plus the total blob length."""
    directories: Tuple[DirectoryLayout, ...]
    total_length: int

    def directory(self, section: ExifSection) -> Optional[DirectoryLayout]:
        for layout in self.directories:
            if layout.section is section:
                return layout
        return None


def _checked_count(tag_id: int, value: ExifValue) -> int:
    """Element count of a value whose data is a whole number of elements."""
    count = value.count
    if len(value.data) != count * element_size(value.type):
        raise ValueError(f'Tag {tag_id}: {len(value.data)} bytes is not a whole number '
                         f'of {ValueType(value.type).name} elements')
    return count


def layout_directory(section: ExifSection, tags: Mapping[int, ExifValue],
                     start_offset: int) -> DirectoryLayout:
    """Assign inline values and out-of-line data offsets for one directory."""
    entries = []
    # Leave room for the entry count, the entries and the next-IFD pointer
    data_offset = start_offset + 2 + IFD_ENTRY_SIZE * len(tags) + 4

    for tag_id in sorted(tags):
        value = tags[tag_id]
        count = _checked_count(tag_id, value)

        if fits_inline(value.type, count):
            packed = int.from_bytes(value.data, 'little')
            entries.append(IFDEntry(tag_id, value.type, count, packed))
        else:
            entries.append(IFDEntry(tag_id, value.type, count, data_offset))
            data_offset += len(value.data)
            # Values must start on a word boundary
            if data_offset & 1:
                data_offset += 1

    return DirectoryLayout(section, start_offset, tuple(entries), data_offset)


def plan_layout(metadata: TagDictionary) -> LayoutPlan:
    """Pass 1 and 2: place every directory, then patch sub-IFD pointers."""
    layouts: Dict[ExifSection, DirectoryLayout] = {}
    offset = FIRST_IFD_OFFSET

    for section in ExifSection:
        if section not in metadata:
            continue
        layout = layout_directory(section, metadata[section], offset)
        layouts[section] = layout
        offset = layout.next_available_offset

    for tag, parent, child in _POINTER_TAGS:
        if parent in layouts and child in layouts:
            layouts[parent] = layouts[parent].with_pointer(tag, layouts[child].start_offset)

    directories = tuple(layouts[s] for s in ExifSection if s in layouts)
    return LayoutPlan(directories, offset)


def serialize(plan: LayoutPlan, metadata: TagDictionary) -> bytes:
    """Emit the header, directories and out-of-line values described by `plan`."""
    buf = bytearray(plan.total_length)
    struct.pack_into('<2sHI', buf, 0, LITTLE_ENDIAN_MARKER, TIFF_SIGNATURE, FIRST_IFD_OFFSET)

    for layout in plan.directories:
        tags = metadata[layout.section]
        pos = layout.start_offset
        struct.pack_into('<H', buf, pos, len(layout.entries))
        pos += 2

        for entry in layout.entries:
            buf[pos:pos + IFD_ENTRY_SIZE] = entry.pack()
            pos += IFD_ENTRY_SIZE
            if not entry.fits_inline:
                data = tags[entry.tag].data
                buf[entry.offset:entry.offset + len(data)] = data

        # Single-page chain: the next-IFD pointer is always zero
        struct.pack_into('<I', buf, layout.next_ifd_pointer_offset, 0)

    return bytes(buf)


def _check_dimension(name: str, value: int) -> int:
    if not 0 <= value <= _MAX_UINT32:
        raise ValueError(f'{name} must fit in an unsigned 32-bit field, got {value}')
    return value


def build_tag_dictionary(entries: Mapping[ExifPropertyPath, ExifValue],
                         width: int, height: int,
                         color_space: ExifColorSpace,
                         config: Optional[CodecConfig] = None) -> TagDictionary:
    """Turn a caller tag map into per-section tag maps ready for layout.

    The caller's map is not modified.
    """
    if config is None:
        config = CodecConfig.default()
    color_space = ExifColorSpace(color_space)
    entries = dict(entries)

    # Adobe RGB has no EXIF ColorSpace code of its own; it is flagged as
    # uncalibrated and identified through the Interop index instead.
    wire_color_space = (ExifColorSpace.UNCALIBRATED if color_space is ExifColorSpace.ADOBE_RGB
                        else color_space)

    metadata: TagDictionary = {
        ExifSection.IMAGE: {
            TAG_ORIENTATION: ExifValue(ValueType.SHORT, encode_short(ORIENTATION_TOP_LEFT)),
        },
        ExifSection.EXIF: {
            TAG_COLOR_SPACE: ExifValue(ValueType.SHORT, encode_short(int(wire_color_space))),
        },
    }

    image_width = ExifPropertyPath(ExifSection.IMAGE, TAG_IMAGE_WIDTH)
    image_length = ExifPropertyPath(ExifSection.IMAGE, TAG_IMAGE_LENGTH)
    pixel_x = ExifPropertyPath(ExifSection.EXIF, TAG_PIXEL_X_DIMENSION)
    pixel_y = ExifPropertyPath(ExifSection.EXIF, TAG_PIXEL_Y_DIMENSION)

    width_value = ExifValue(ValueType.LONG, encode_long(_check_dimension('width', width)))
    height_value = ExifValue(ValueType.LONG, encode_long(_check_dimension('height', height)))

    if image_width in entries:
        # Uncompressed image: dimensions live in the Image directory
        metadata[ExifSection.IMAGE][TAG_IMAGE_WIDTH] = width_value
        metadata[ExifSection.IMAGE][TAG_IMAGE_LENGTH] = height_value
        entries.pop(pixel_x, None)
        entries.pop(pixel_y, None)
    else:
        metadata[ExifSection.EXIF][TAG_PIXEL_X_DIMENSION] = width_value
        metadata[ExifSection.EXIF][TAG_PIXEL_Y_DIMENSION] = height_value
        entries.pop(image_width, None)
        entries.pop(image_length, None)

    if color_space in (ExifColorSpace.SRGB, ExifColorSpace.ADOBE_RGB):
        entries.pop(ExifPropertyPath(ExifSection.INTEROP, TAG_INTEROP_INDEX), None)
        entries.pop(ExifPropertyPath(ExifSection.INTEROP, TAG_INTEROP_VERSION), None)
        index = INTEROP_INDEX_SRGB if color_space is ExifColorSpace.SRGB else INTEROP_INDEX_ADOBE_RGB
        metadata[ExifSection.INTEROP] = {
            TAG_INTEROP_INDEX: ExifValue(ValueType.ASCII, index),
            TAG_INTEROP_VERSION: ExifValue(ValueType.UNDEFINED, DEFAULT_INTEROP_VERSION),
        }

    pointer_tags = {tag: parent for tag, parent, _ in _POINTER_TAGS}
    for path, value in entries.items():
        if (path.section is ExifSection.IMAGE
                and path.tag_id not in config.image_tag_allowlist):
            logger.debug("Dropping unsupported Image tag %s", path.name)
            continue
        if pointer_tags.get(path.tag_id) is path.section:
            # Sub-IFD pointers are recomputed during layout
            continue
        # Values set above take precedence over the caller's
        metadata.setdefault(path.section, {}).setdefault(path.tag_id, value)

    _add_version_entries(metadata)
    _add_pointer_placeholders(metadata)
    return metadata


def _add_version_entries(metadata: TagDictionary):
    metadata[ExifSection.EXIF].setdefault(
        TAG_EXIF_VERSION, ExifValue(ValueType.UNDEFINED, DEFAULT_EXIF_VERSION))
    if ExifSection.GPS in metadata:
        metadata[ExifSection.GPS].setdefault(
            TAG_GPS_VERSION_ID, ExifValue(ValueType.BYTE, DEFAULT_GPS_VERSION))
    if ExifSection.INTEROP in metadata:
        metadata[ExifSection.INTEROP].setdefault(
            TAG_INTEROP_VERSION, ExifValue(ValueType.UNDEFINED, DEFAULT_INTEROP_VERSION))


def _add_pointer_placeholders(metadata: TagDictionary):
    """Zero LONG entries for each sub-IFD pointer, patched during layout."""
    placeholder = ExifValue(ValueType.LONG, bytes(4))
    for tag, parent, child in _POINTER_TAGS:
        if child in metadata:
            metadata[parent][tag] = placeholder


class ExifWriter:
    """Build a little-endian EXIF blob from an edited tag map.

    Args:
        entries: Caller tag map of ExifPropertyPath -> ExifValue.
        width: Document width in pixels.
        height: Document height in pixels.
        color_space: sRGB, Adobe RGB or uncalibrated.
        config: Optional codec configuration (Image tag allowlist).
    """

    def __init__(self, entries: Mapping[ExifPropertyPath, ExifValue],
                 width: int, height: int,
                 color_space: ExifColorSpace = ExifColorSpace.SRGB,
                 config: Optional[CodecConfig] = None):
        self.metadata = build_tag_dictionary(entries, width, height, color_space, config)

    def plan(self) -> LayoutPlan:
        return plan_layout(self.metadata)

    def create_exif_blob(self) -> bytes:
        plan = self.plan()
        logger.debug("EXIF layout: %s, %d bytes",
                     ', '.join(f'{d.section.value}@{d.start_offset}' for d in plan.directories),
                     plan.total_length)
        return serialize(plan, self.metadata)


def write_exif(entries: Mapping[ExifPropertyPath, ExifValue], width: int, height: int,
               color_space: ExifColorSpace = ExifColorSpace.SRGB,
               config: Optional[CodecConfig] = None) -> bytes:
    """Convenience wrapper: ExifWriter(...).create_exif_blob()."""
    return ExifWriter(entries, width, height, color_space, config).create_exif_blob()
