"""TIFF/EXIF constants -- type sizes, tag ids, section names.

Type and tag tables follow the TIFF 6.0 and EXIF 2.3 specifications.
"""

from typing import Dict, FrozenSet, Tuple

# TIFF type definitions: {type_id: (element_size_bytes, struct_format_char)}
TIFF_TYPES: Dict[int, Tuple[int, str]] = {
    1: (1, 'B'),    # BYTE
    2: (1, 's'),    # ASCII
    3: (2, 'H'),    # SHORT
    4: (4, 'I'),    # LONG
    5: (8, 'II'),   # RATIONAL (num/denom)
    6: (1, 'b'),    # SBYTE
    7: (1, 's'),    # UNDEFINED
    8: (2, 'h'),    # SSHORT
    9: (4, 'i'),    # SLONG
    10: (8, 'ii'),  # SRATIONAL
    11: (4, 'f'),   # FLOAT
    12: (8, 'd'),   # DOUBLE
    13: (4, 'I'),   # IFD
}

BIG_ENDIAN_MARKER = b'MM'
LITTLE_ENDIAN_MARKER = b'II'
TIFF_SIGNATURE = 42

FIRST_IFD_OFFSET = 8
IFD_ENTRY_SIZE = 12

# Largest out-of-line value the parser will read
MAX_VALUE_LENGTH = 2 ** 31 - 1

# Sub-IFD pointer tags
EXIF_IFD_POINTER_TAG = 34665
GPS_IFD_POINTER_TAG = 34853
INTEROP_IFD_POINTER_TAG = 40965

# Thumbnail / strip layout tags -- never carried through a parse
SKIPPED_TAGS: FrozenSet[int] = frozenset({
    273,  # StripOffsets
    278,  # RowsPerStrip
    279,  # StripByteCounts
    330,  # SubIFDs
    513,  # JPEGInterchangeFormat (thumbnail offset)
    514,  # JPEGInterchangeFormatLength (thumbnail length)
})

# Image-section tags the writer keeps.  Strip/thumbnail offset tags are
# left out: they are meaningless without the pixel data they point at.
IMAGE_TAG_ALLOWLIST: FrozenSet[int] = frozenset({
    # Image data structure
    256,    # ImageWidth
    257,    # ImageLength
    258,    # BitsPerSample
    259,    # Compression
    262,    # PhotometricInterpretation
    274,    # Orientation
    277,    # SamplesPerPixel
    284,    # PlanarConfiguration
    530,    # YCbCrSubSampling
    531,    # YCbCrPositioning
    282,    # XResolution
    283,    # YResolution
    296,    # ResolutionUnit
    # Image data characteristics
    301,    # TransferFunction
    318,    # WhitePoint
    319,    # PrimaryChromaticities
    529,    # YCbCrCoefficients
    532,    # ReferenceBlackWhite
    # Other tags
    306,    # DateTime
    270,    # ImageDescription
    271,    # Make
    272,    # Model
    305,    # Software
    315,    # Artist
    33432,  # Copyright
})

# Well-known tag ids used by the writer and helpers
TAG_IMAGE_WIDTH = 256
TAG_IMAGE_LENGTH = 257
TAG_ORIENTATION = 274
TAG_X_RESOLUTION = 282
TAG_Y_RESOLUTION = 283
TAG_RESOLUTION_UNIT = 296
TAG_ICC_PROFILE = 34675
TAG_EXIF_VERSION = 36864
TAG_COLOR_SPACE = 40961
TAG_PIXEL_X_DIMENSION = 40962
TAG_PIXEL_Y_DIMENSION = 40963
TAG_GPS_VERSION_ID = 0
TAG_INTEROP_INDEX = 1
TAG_INTEROP_VERSION = 2

DEFAULT_EXIF_VERSION = b'0230'
DEFAULT_GPS_VERSION = bytes((2, 3, 0, 0))
DEFAULT_INTEROP_VERSION = b'0100'
INTEROP_INDEX_SRGB = b'R98\x00'
INTEROP_INDEX_ADOBE_RGB = b'R03\x00'

# Orientation codes (TIFF tag 274)
ORIENTATION_TOP_LEFT = 1

# ResolutionUnit codes (TIFF tag 296)
RESOLUTION_UNIT_INCH = 2
RESOLUTION_UNIT_CENTIMETER = 3

# Image (IFD0) tag names
TAG_NAMES: Dict[int, str] = {
    11: 'ProcessingSoftware', 254: 'NewSubfileType', 255: 'SubfileType',
    256: 'ImageWidth', 257: 'ImageLength', 258: 'BitsPerSample',
    259: 'Compression', 262: 'PhotometricInterpretation',
    270: 'ImageDescription', 271: 'Make', 272: 'Model',
    273: 'StripOffsets', 274: 'Orientation', 277: 'SamplesPerPixel',
    278: 'RowsPerStrip', 279: 'StripByteCounts',
    282: 'XResolution', 283: 'YResolution', 284: 'PlanarConfiguration',
    296: 'ResolutionUnit', 301: 'TransferFunction', 305: 'Software',
    306: 'DateTime', 315: 'Artist', 316: 'HostComputer',
    318: 'WhitePoint', 319: 'PrimaryChromaticities', 330: 'SubIFDs',
    513: 'JPEGInterchangeFormat', 514: 'JPEGInterchangeFormatLength',
    529: 'YCbCrCoefficients', 530: 'YCbCrSubSampling',
    531: 'YCbCrPositioning', 532: 'ReferenceBlackWhite',
    700: 'XMLPacket', 33432: 'Copyright', 34665: 'ExifTag',
    34675: 'InterColorProfile', 34853: 'GPSTag',
}

# Exif sub-IFD tag names
EXIF_TAG_NAMES: Dict[int, str] = {
    33434: 'ExposureTime', 33437: 'FNumber', 34850: 'ExposureProgram',
    34852: 'SpectralSensitivity', 34855: 'ISOSpeedRatings',
    34864: 'SensitivityType', 36864: 'ExifVersion',
    36867: 'DateTimeOriginal', 36868: 'DateTimeDigitized',
    36880: 'OffsetTime', 36881: 'OffsetTimeOriginal',
    36882: 'OffsetTimeDigitized', 37121: 'ComponentsConfiguration',
    37122: 'CompressedBitsPerPixel', 37377: 'ShutterSpeedValue',
    37378: 'ApertureValue', 37379: 'BrightnessValue',
    37380: 'ExposureBiasValue', 37381: 'MaxApertureValue',
    37382: 'SubjectDistance', 37383: 'MeteringMode', 37384: 'LightSource',
    37385: 'Flash', 37386: 'FocalLength', 37396: 'SubjectArea',
    37500: 'MakerNote', 37510: 'UserComment', 37520: 'SubSecTime',
    37521: 'SubSecTimeOriginal', 37522: 'SubSecTimeDigitized',
    40960: 'FlashpixVersion', 40961: 'ColorSpace',
    40962: 'PixelXDimension', 40963: 'PixelYDimension',
    40964: 'RelatedSoundFile', 40965: 'InteroperabilityTag',
    41483: 'FlashEnergy', 41486: 'FocalPlaneXResolution',
    41487: 'FocalPlaneYResolution', 41488: 'FocalPlaneResolutionUnit',
    41492: 'SubjectLocation', 41493: 'ExposureIndex',
    41495: 'SensingMethod', 41728: 'FileSource', 41729: 'SceneType',
    41730: 'CFAPattern', 41985: 'CustomRendered', 41986: 'ExposureMode',
    41987: 'WhiteBalance', 41988: 'DigitalZoomRatio',
    41989: 'FocalLengthIn35mmFilm', 41990: 'SceneCaptureType',
    41991: 'GainControl', 41992: 'Contrast', 41993: 'Saturation',
    41994: 'Sharpness', 41996: 'SubjectDistanceRange',
    42016: 'ImageUniqueID', 42032: 'CameraOwnerName',
    42033: 'BodySerialNumber', 42034: 'LensSpecification',
    42035: 'LensMake', 42036: 'LensModel', 42037: 'LensSerialNumber',
}

# GPS tag names (tags 0-31)
GPS_TAG_NAMES: Dict[int, str] = {
    0: 'GPSVersionID', 1: 'GPSLatitudeRef', 2: 'GPSLatitude',
    3: 'GPSLongitudeRef', 4: 'GPSLongitude', 5: 'GPSAltitudeRef',
    6: 'GPSAltitude', 7: 'GPSTimeStamp', 8: 'GPSSatellites',
    9: 'GPSStatus', 10: 'GPSMeasureMode', 11: 'GPSDOP',
    12: 'GPSSpeedRef', 13: 'GPSSpeed', 14: 'GPSTrackRef',
    15: 'GPSTrack', 16: 'GPSImgDirectionRef', 17: 'GPSImgDirection',
    18: 'GPSMapDatum', 19: 'GPSDestLatitudeRef', 20: 'GPSDestLatitude',
    21: 'GPSDestLongitudeRef', 22: 'GPSDestLongitude', 23: 'GPSDestBearingRef',
    24: 'GPSDestBearing', 25: 'GPSDestDistanceRef', 26: 'GPSDestDistance',
    27: 'GPSProcessingMethod', 28: 'GPSAreaInformation', 29: 'GPSDateStamp',
    30: 'GPSDifferential', 31: 'GPSHPositioningError',
}

# Interoperability sub-IFD tag names
INTEROP_TAG_NAMES: Dict[int, str] = {
    1: 'InteroperabilityIndex', 2: 'InteroperabilityVersion',
    4096: 'RelatedImageFileFormat', 4097: 'RelatedImageWidth',
    4098: 'RelatedImageLength',
}
