"""Tests for value helpers: scalar decoding, display, orientation, resolution, color space."""

import pytest

from tiffexif.helpers import (
    decode_long,
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
from tiffexif.models import ExifColorSpace, ExifSection, ExifValue, ValueType
from tests.conftest import path, rational, short, value

IMAGE = ExifSection.IMAGE
EXIF = ExifSection.EXIF
INTEROP = ExifSection.INTEROP


class TestScalars:
    def test_encode(self):
        assert encode_short(6) == b'\x06\x00'
        assert encode_long(1) == b'\x01\x00\x00\x00'
        assert encode_rational(1, 2) == b'\x01\x00\x00\x00\x02\x00\x00\x00'

    def test_decode_short(self):
        assert decode_short(value(3, short(6))) == 6
        assert decode_short(value(4, b'\x06\x00\x00\x00')) is None
        assert decode_short(value(3, short(1) + short(2))) is None
        assert decode_short(None) is None

    def test_decode_long(self):
        assert decode_long(value(4, encode_long(4000))) == 4000
        assert decode_long(value(3, short(1))) is None

    def test_decode_rational(self):
        assert decode_rational(value(5, rational(1, 4))) == 0.25
        assert decode_rational(value(5, rational(1, 0))) is None
        assert decode_rational(value(10, rational(1, 4))) is None


class TestDecodeValues:
    def test_ascii(self):
        assert decode_values(value(2, b'ACME\x00')) == 'ACME'

    def test_undefined(self):
        assert decode_values(value(7, b'0230')) == b'0230'

    def test_shorts(self):
        assert decode_values(value(3, short(1) + short(2))) == [1, 2]

    def test_rationals(self):
        data = rational(52, 1) + rational(30, 1)
        assert decode_values(value(5, data)) == [(52, 1), (30, 1)]

    def test_signed_rational(self):
        data = encode_rational(1, 3)
        assert decode_values(ExifValue(ValueType.SRATIONAL, data)) == [(1, 3)]

    def test_unknown_type(self):
        assert decode_values(ExifValue(99, b'\x01\x02')) == b'\x01\x02'


class TestFormatValue:
    def test_ascii(self):
        assert format_value(value(2, b'ACME\x00')) == 'ACME'

    def test_rationals(self):
        assert format_value(value(5, rational(1, 250))) == '1/250'

    def test_printable_undefined(self):
        assert format_value(value(7, b'0230')) == '0230'

    def test_binary_undefined(self):
        assert format_value(value(7, b'\x01\x02')) == '01 02'

    def test_truncated(self):
        text = format_value(value(2, b'x' * 100 + b'\x00'), max_length=20)
        assert len(text) == 20
        assert text.endswith('...')


class TestOrientation:
    def test_get_orientation(self):
        assert get_orientation({path(IMAGE, 274): value(3, short(6))}) == 6

    def test_missing_or_invalid(self):
        assert get_orientation({}) is None
        assert get_orientation({path(IMAGE, 274): value(3, short(9))}) is None

    @pytest.mark.parametrize('code,expected', [
        (1, (0, False, False)),
        (3, (180, False, False)),
        (6, (90, False, False)),
        (8, (270, False, False)),
        (2, (0, True, False)),
        (4, (0, False, True)),
    ])
    def test_transforms(self, code, expected):
        assert orientation_transform(code) == expected

    def test_unknown_transform_is_identity(self):
        assert orientation_transform(42) == (0, False, False)


class TestResolution:
    def _entries(self, x, y, unit):
        return {
            path(IMAGE, 282): value(5, rational(*x)),
            path(IMAGE, 283): value(5, rational(*y)),
            path(IMAGE, 296): value(3, short(unit)),
        }

    def test_inch(self):
        assert get_resolution(self._entries((300, 1), (300, 1), 2)) == (300.0, 300.0, 'inch')

    def test_centimeter(self):
        assert get_resolution(self._entries((118, 1), (59, 1), 3)) == (118.0, 59.0, 'cm')

    def test_no_unit(self):
        assert get_resolution(self._entries((72, 1), (72, 1), 1)) is None

    def test_zero_denominator(self):
        assert get_resolution(self._entries((72, 0), (72, 1), 2)) is None

    def test_zero_resolution(self):
        assert get_resolution(self._entries((0, 1), (72, 1), 2)) is None

    def test_missing_tag(self):
        entries = self._entries((72, 1), (72, 1), 2)
        del entries[path(IMAGE, 296)]
        assert get_resolution(entries) is None


class TestSelectColorSpace:
    def test_defaults_to_srgb(self):
        color_space, remaining, icc = select_color_space({})
        assert color_space is ExifColorSpace.SRGB
        assert remaining == {}
        assert icc is None

    def test_reads_and_removes_tag(self):
        entries = {path(EXIF, 40961): value(3, short(65535)), path(EXIF, 34855): value(3, short(1))}
        color_space, remaining, _ = select_color_space(entries)
        assert color_space is ExifColorSpace.UNCALIBRATED
        assert list(remaining) == [path(EXIF, 34855)]
        assert path(EXIF, 40961) in entries

    def test_unknown_code_is_srgb(self):
        color_space, _, _ = select_color_space({path(EXIF, 40961): value(3, short(7))})
        assert color_space is ExifColorSpace.SRGB

    def test_embedded_profile(self):
        entries = {
            path(IMAGE, 34675): value(7, b'ICCDATA'),
            path(INTEROP, 1): value(2, b'R98\x00'),
            path(INTEROP, 2): value(7, b'0100'),
        }
        color_space, remaining, icc = select_color_space(entries)
        assert color_space is ExifColorSpace.UNCALIBRATED
        assert icc == b'ICCDATA'
        assert remaining == {}

    def test_profile_argument_wins(self):
        entries = {path(IMAGE, 34675): value(7, b'EMBEDDED')}
        _, remaining, icc = select_color_space(entries, icc_profile=b'GIVEN')
        assert icc == b'GIVEN'
        assert remaining == {}
