"""tiffexif -- read and write TIFF-structured EXIF metadata blobs."""

__version__ = "1.0.0"

from tiffexif.config import CodecConfig
from tiffexif.helpers import (
    decode_rational,
    decode_short,
    decode_values,
    encode_long,
    encode_rational,
    encode_short,
    format_value,
    get_orientation,
    get_resolution,
    orientation_transform,
    select_color_space,
)
from tiffexif.models import (
    ByteOrder,
    ExifColorSpace,
    ExifPropertyPath,
    ExifSection,
    ExifValue,
    ExifValueCollection,
    IFDEntry,
    ValueType,
    fits_inline,
)
from tiffexif.parser import parse, parse_stream
from tiffexif.reader import EndianBinaryReader
from tiffexif.writer import ExifWriter, write_exif

__all__ = [
    "__version__",
    "ByteOrder",
    "CodecConfig",
    "EndianBinaryReader",
    "ExifColorSpace",
    "ExifPropertyPath",
    "ExifSection",
    "ExifValue",
    "ExifValueCollection",
    "ExifWriter",
    "IFDEntry",
    "ValueType",
    "decode_rational",
    "decode_short",
    "decode_values",
    "encode_long",
    "encode_rational",
    "encode_short",
    "fits_inline",
    "format_value",
    "get_orientation",
    "get_resolution",
    "orientation_transform",
    "parse",
    "parse_stream",
    "select_color_space",
    "write_exif",
]
