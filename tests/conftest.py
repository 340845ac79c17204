"""Shared test fixtures -- synthetic EXIF (TIFF-structured) blob generators."""

import struct
import pytest

from tiffexif.models import ExifPropertyPath, ExifSection, ExifValue, ValueType

# Element sizes by TIFF type, kept local so the builders do not lean on
# the code under test
_TYPE_SIZES = {1: 1, 2: 1, 3: 2, 4: 4, 5: 8, 6: 1, 7: 1, 8: 2, 9: 4, 10: 8, 11: 4, 12: 8, 13: 4}


def short(value, endian='<'):
    return struct.pack(endian + 'H', value)


def long_(value, endian='<'):
    return struct.pack(endian + 'I', value)


def rational(num, den, endian='<'):
    return struct.pack(endian + 'II', num, den)


def _stored_inline(type_id, count, value):
    size = _TYPE_SIZES.get(type_id, 0)
    if size == 0 or type_id in (5, 10, 12):
        return False
    return size * count <= 4 and len(value) <= 4


def _directory_size(entries):
    """Bytes taken by a directory plus its out-of-line data."""
    size = 2 + 12 * len(entries) + 4
    for _, type_id, count, value in entries:
        if isinstance(value, bytes) and not _stored_inline(type_id, count, value):
            size += len(value) + (len(value) & 1)
    return size


def _encode_directory(entries, start, endian, pointers):
    """Encode one directory at `start`, its values right after it.

    Entry values:
        int   -- written verbatim into the value/offset field.
        bytes -- already in `endian` order; stored inline (left-justified)
                 when the type and count fit in 4 bytes, otherwise out-of-line.
        None  -- sub-IFD pointer, resolved from `pointers` by tag.
    """
    data_offset = start + 2 + 12 * len(entries) + 4
    body = struct.pack(endian + 'H', len(entries))
    data = b''

    for tag_id, type_id, count, value in entries:
        if value is None:
            value = pointers[tag_id]
        if isinstance(value, int):
            field = struct.pack(endian + 'I', value)
        elif _stored_inline(type_id, count, value):
            field = value.ljust(4, b'\x00')
        else:
            field = struct.pack(endian + 'I', data_offset + len(data))
            data += value
            if len(data) & 1:
                data += b'\x00'
        body += struct.pack(endian + 'HHI', tag_id, type_id, count) + field

    body += struct.pack(endian + 'I', 0)  # No next IFD
    return body + data


def build_exif_blob(image, exif=None, gps=None, interop=None, endian='<'):
    """Build an EXIF blob with an Image directory and optional sub-IFDs.

    Args:
        image: List of (tag_id, type_id, count, value) for the Image directory.
        exif, gps, interop: Same, for each sub-IFD.  Pointer tags are added
            automatically (Exif and GPS pointers in Image, Interop in Exif).
        endian: '<' for little-endian, '>' for big-endian.

    Returns:
        bytes: Complete blob, directories laid out Image, Exif, GPS, Interop.
    """
    image = list(image)
    exif = list(exif) if exif is not None else None
    gps = list(gps) if gps is not None else None
    interop = list(interop) if interop is not None else None

    if exif is not None:
        image.append((34665, 4, 1, None))
    if gps is not None:
        image.append((34853, 4, 1, None))
    if interop is not None:
        if exif is None:
            exif = []
            image.append((34665, 4, 1, None))
        exif.append((40965, 4, 1, None))

    directories = [(34665, exif), (34853, gps), (40965, interop)]
    pointers = {}
    offset = 8 + _directory_size(image)
    for tag, entries in directories:
        if entries is not None:
            pointers[tag] = offset
            offset += _directory_size(entries)

    bo = b'II' if endian == '<' else b'MM'
    result = bo + struct.pack(endian + 'HI', 42, 8)
    result += _encode_directory(image, 8, endian, pointers)
    for tag, entries in directories:
        if entries is not None:
            result += _encode_directory(entries, pointers[tag], endian, pointers)
    return result


def build_tiff(entries, endian='<', extra_data=None):
    """Build a blob holding only an Image directory.

    Args:
        entries: List of (tag_id, type_id, count, value) tuples.
        endian: '<' for little-endian, '>' for big-endian.
        extra_data: Optional bytes appended after the directory.
    """
    result = build_exif_blob(entries, endian=endian)
    if extra_data:
        result += extra_data
    return result


def build_tiff_with_sub_ifd(main_entries, sub_ifd_entries, pointer_tag, endian='<'):
    """Build a blob where the Image directory points at one sub-IFD.

    Args:
        main_entries: Entries for the Image directory (pointer added for you).
        sub_ifd_entries: Entries for the sub-IFD.
        pointer_tag: 34665 (Exif) or 34853 (GPS).
        endian: '<' or '>'.
    """
    if pointer_tag == 34665:
        return build_exif_blob(main_entries, exif=sub_ifd_entries, endian=endian)
    if pointer_tag == 34853:
        return build_exif_blob(main_entries, gps=sub_ifd_entries, endian=endian)
    raise ValueError(f'Unsupported pointer tag {pointer_tag}')


def sample_sections(endian='<'):
    """A representative set of entries covering every section and most types."""
    return dict(
        image=[
            (271, 2, 5, b'ACME\x00'),                         # Make, out-of-line
            (272, 2, 4, b'X100'),                             # Model, inline
            (274, 3, 1, short(6, endian)),                    # Orientation
            (282, 5, 1, rational(300, 1, endian)),            # XResolution
            (283, 5, 1, rational(300, 1, endian)),            # YResolution
            (296, 3, 1, short(2, endian)),                    # ResolutionUnit
        ],
        exif=[
            (33434, 5, 1, rational(1, 250, endian)),          # ExposureTime
            (34855, 3, 1, short(400, endian)),                # ISO
            (36864, 7, 4, b'0231'),                           # ExifVersion
            (37121, 7, 4, b'\x01\x02\x03\x00'),               # ComponentsConfiguration
            (37380, 10, 1, struct.pack(endian + 'ii', -1, 3)),  # ExposureBiasValue
            (40961, 3, 1, short(1, endian)),                  # ColorSpace
            (40962, 4, 1, long_(4000, endian)),               # PixelXDimension
            (40963, 4, 1, long_(3000, endian)),               # PixelYDimension
            (42240, 12, 1, struct.pack(endian + 'd', 2.2)),   # Gamma
            # Private tags covering the remaining types, inline and out-of-line
            (50001, 6, 2, struct.pack('2b', -1, 5)),                  # SBYTE
            (50002, 6, 6, struct.pack('6b', -1, 2, -3, 4, -5, 6)),
            (50003, 8, 1, struct.pack(endian + 'h', -2)),             # SSHORT
            (50004, 8, 3, struct.pack(endian + '3h', -1, 2, -300)),
            (50005, 9, 1, struct.pack(endian + 'i', -70000)),         # SLONG
            (50006, 9, 2, struct.pack(endian + '2i', -1, 65536)),
            (50007, 11, 1, struct.pack(endian + 'f', 1.5)),           # FLOAT
            (50008, 11, 2, struct.pack(endian + '2f', -0.25, 3.0)),
            (50009, 13, 1, struct.pack(endian + 'I', 1234)),          # IFD
            (50010, 13, 2, struct.pack(endian + '2I', 8, 4096)),
        ],
        gps=[
            (0, 1, 4, bytes((2, 3, 0, 0))),                   # GPSVersionID
            (1, 2, 2, b'N\x00'),                              # GPSLatitudeRef
            (2, 5, 3, rational(52, 1, endian) + rational(30, 1, endian)
             + rational(0, 1, endian)),                       # GPSLatitude
            (5, 1, 1, b'\x00'),                               # GPSAltitudeRef
            (6, 5, 1, rational(1234, 10, endian)),            # GPSAltitude
        ],
        interop=[
            (1, 2, 4, b'R98\x00'),                            # InteroperabilityIndex
            (2, 7, 4, b'0100'),                               # InteroperabilityVersion
        ],
    )


def path(section, tag_id):
    return ExifPropertyPath(section, tag_id)


def value(type_id, data):
    return ExifValue(ValueType(type_id), data)


@pytest.fixture
def le_blob():
    """Little-endian blob with Image, Exif, GPS and Interop directories."""
    return build_exif_blob(**sample_sections('<'), endian='<')


@pytest.fixture
def be_blob():
    """Big-endian twin of `le_blob`."""
    return build_exif_blob(**sample_sections('>'), endian='>')


@pytest.fixture
def blob_file(tmp_path, le_blob):
    """`le_blob` on disk with the Exif\\0\\0 preamble JPEG/WebP containers use."""
    f = tmp_path / 'photo.exif'
    f.write_bytes(b'Exif\x00\x00' + le_blob)
    return f


@pytest.fixture
def camera_entries():
    """A caller tag map as a photo editor would hand it to the writer."""
    return {
        path(ExifSection.IMAGE, 271): value(2, b'ACME\x00'),
        path(ExifSection.IMAGE, 272): value(2, b'X100\x00'),
        path(ExifSection.IMAGE, 274): value(3, short(6)),
        path(ExifSection.IMAGE, 282): value(5, rational(72, 1)),
        path(ExifSection.IMAGE, 283): value(5, rational(72, 1)),
        path(ExifSection.IMAGE, 296): value(3, short(2)),
        path(ExifSection.IMAGE, 273): value(4, long_(1234)),    # StripOffsets
        path(ExifSection.IMAGE, 50000): value(1, b'\x01'),      # not allowlisted
        path(ExifSection.EXIF, 33434): value(5, rational(1, 250)),
        path(ExifSection.EXIF, 34855): value(3, short(400)),
        path(ExifSection.EXIF, 40962): value(4, long_(4000)),
        path(ExifSection.EXIF, 40963): value(4, long_(3000)),
        path(ExifSection.GPS, 1): value(2, b'N\x00'),
    }
