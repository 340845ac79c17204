"""Value helpers -- scalar encoding/decoding, display, orientation, resolution."""

import struct
from typing import Dict, Mapping, Optional, Tuple, Union

from tiffexif.constants import (
    RESOLUTION_UNIT_CENTIMETER,
    RESOLUTION_UNIT_INCH,
    TAG_COLOR_SPACE,
    TAG_ICC_PROFILE,
    TAG_INTEROP_INDEX,
    TAG_INTEROP_VERSION,
    TAG_ORIENTATION,
    TAG_RESOLUTION_UNIT,
    TAG_X_RESOLUTION,
    TAG_Y_RESOLUTION,
    TIFF_TYPES,
)
from tiffexif.models import ExifColorSpace, ExifPropertyPath, ExifSection, ExifValue, ValueType

# Orientation code -> (clockwise rotation in degrees, flip horizontal, flip vertical)
ORIENTATION_TRANSFORMS: Dict[int, Tuple[int, bool, bool]] = {
    1: (0, False, False),     # TopLeft: nothing to do
    2: (0, True, False),      # TopRight: flip horizontally
    3: (180, False, False),   # BottomRight: rotate 180
    4: (0, False, True),      # BottomLeft: flip vertically
    5: (90, True, False),     # LeftTop: rotate 90 CW, flip horizontally
    6: (90, False, False),    # RightTop: rotate 90 CW
    7: (270, True, False),    # RightBottom: rotate 270 CW, flip horizontally
    8: (270, False, False),   # LeftBottom: rotate 270 CW
}


_COLOR_SPACE_CODES = frozenset(int(c) for c in ExifColorSpace)


def encode_short(value: int) -> bytes:
    return struct.pack('<H', value)


def encode_long(value: int) -> bytes:
    return struct.pack('<I', value)


def encode_rational(numerator: int, denominator: int) -> bytes:
    return struct.pack('<II', numerator, denominator)


def decode_short(value: Optional[ExifValue]) -> Optional[int]:
    """Decode a single SHORT value, or None if `value` is not one."""
    if value is None or value.type != ValueType.SHORT or len(value.data) != 2:
        return None
    return struct.unpack('<H', value.data)[0]


def decode_long(value: Optional[ExifValue]) -> Optional[int]:
    """Decode a single LONG value, or None if `value` is not one."""
    if value is None or value.type != ValueType.LONG or len(value.data) != 4:
        return None
    return struct.unpack('<I', value.data)[0]


def decode_rational(value: Optional[ExifValue]) -> Optional[float]:
    """Decode a single RATIONAL as a float.

    Returns None for the wrong type or size, and for a zero denominator.
    """
    if value is None or value.type != ValueType.RATIONAL or len(value.data) != 8:
        return None
    numerator, denominator = struct.unpack('<II', value.data)
    if denominator == 0:
        return None
    return numerator / denominator


def decode_values(value: ExifValue) -> Union[str, bytes, list]:
    """Decode a value into Python objects.

    ASCII -> str (trailing NULs removed), UNDEFINED -> bytes, rationals ->
    list of (numerator, denominator) tuples, other types -> list of numbers.
    """
    if value.type == ValueType.ASCII:
        return value.data.rstrip(b'\x00').decode('ascii', errors='replace')
    if value.type == ValueType.UNDEFINED or value.type not in TIFF_TYPES:
        return value.data

    elem_size, fmt_char = TIFF_TYPES[value.type]
    count = len(value.data) // elem_size
    numbers = list(struct.unpack('<' + fmt_char * count, value.data[:count * elem_size]))
    if len(fmt_char) == 2:
        return list(zip(numbers[0::2], numbers[1::2]))
    return numbers


def format_value(value: ExifValue, max_length: int = 60) -> str:
    """Short human-readable rendering of a value for listings."""
    decoded = decode_values(value)
    if isinstance(decoded, str):
        text = decoded
    elif isinstance(decoded, bytes):
        if decoded and all(32 <= b < 127 for b in decoded):
            text = decoded.decode('ascii')
        else:
            text = decoded.hex(' ')
    else:
        text = ', '.join(f'{item[0]}/{item[1]}' if isinstance(item, tuple) else str(item)
                         for item in decoded)
    if len(text) > max_length:
        text = text[:max_length - 3] + '...'
    return text


def get_orientation(values: Mapping[ExifPropertyPath, ExifValue]) -> Optional[int]:
    """Image.Orientation as 1-8, or None if absent or out of range."""
    code = decode_short(values.get(ExifPropertyPath(ExifSection.IMAGE, TAG_ORIENTATION)))
    if code is None or code not in ORIENTATION_TRANSFORMS:
        return None
    return code


def orientation_transform(code: int) -> Tuple[int, bool, bool]:
    """(rotate degrees clockwise, flip horizontal, flip vertical) for an orientation code.

    Unknown codes map to the identity transform.
    """
    return ORIENTATION_TRANSFORMS.get(code, (0, False, False))


def get_resolution(values: Mapping[ExifPropertyPath, ExifValue]
                   ) -> Optional[Tuple[float, float, str]]:
    """Return (x, y, unit) from the Image resolution tags.

    unit is 'inch' or 'cm'.  None unless all three tags decode, both
    resolutions are positive and the unit is inch or centimeter.
    """
    x_res = decode_rational(values.get(ExifPropertyPath(ExifSection.IMAGE, TAG_X_RESOLUTION)))
    y_res = decode_rational(values.get(ExifPropertyPath(ExifSection.IMAGE, TAG_Y_RESOLUTION)))
    unit = decode_short(values.get(ExifPropertyPath(ExifSection.IMAGE, TAG_RESOLUTION_UNIT)))
    if x_res is None or y_res is None or unit is None:
        return None
    if x_res <= 0.0 or y_res <= 0.0:
        return None
    if unit == RESOLUTION_UNIT_INCH:
        return x_res, y_res, 'inch'
    if unit == RESOLUTION_UNIT_CENTIMETER:
        return x_res, y_res, 'cm'
    return None


def select_color_space(entries: Mapping[ExifPropertyPath, ExifValue],
                       icc_profile: Optional[bytes] = None
                       ) -> Tuple[ExifColorSpace, Dict[ExifPropertyPath, ExifValue], Optional[bytes]]:
    """Pick the writer color space for a tag map.

    The Exif.ColorSpace tag is decoded and removed (sRGB when missing or
    unrecognized).  An ICC profile, passed in or found in
    Image.InterColorProfile (which is removed and returned), makes the
    image uncalibrated and strips the Interop index/version tags.

    Returns (color_space, remaining_entries, icc_profile).
    """
    remaining = dict(entries)
    color_space = ExifColorSpace.SRGB

    code = decode_short(remaining.pop(ExifPropertyPath(ExifSection.EXIF, TAG_COLOR_SPACE), None))
    if code in _COLOR_SPACE_CODES:
        color_space = ExifColorSpace(code)

    profile_path = ExifPropertyPath(ExifSection.IMAGE, TAG_ICC_PROFILE)
    profile_value = remaining.pop(profile_path, None)
    if icc_profile is None and profile_value is not None:
        icc_profile = profile_value.data

    if icc_profile is not None:
        color_space = ExifColorSpace.UNCALIBRATED
        remaining.pop(ExifPropertyPath(ExifSection.INTEROP, TAG_INTEROP_INDEX), None)
        remaining.pop(ExifPropertyPath(ExifSection.INTEROP, TAG_INTEROP_VERSION), None)

    return color_space, remaining, icc_profile
