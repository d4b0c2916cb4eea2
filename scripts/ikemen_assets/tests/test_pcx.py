"""
Tests for the PCX decoder.
"""

import struct
import unittest
from unittest.mock import patch

from ikemen_assets.sprites.pcx import DecodedImage, decode_pcx, decode_rle
from ikemen_assets.tests.builders import make_palette, make_pcx, single_color_portrait


class TestDecodeRle(unittest.TestCase):
    """Test run-length decoding of index streams."""

    def test_literals_and_runs(self):
        """Test literal bytes and repeat counts."""
        stream = bytes([7, 0xC3, 9, 2])
        indices = decode_rle(stream, 5)
        self.assertEqual(list(indices), [7, 9, 9, 9, 2])

    def test_stops_when_expected_count_filled(self):
        """Test decoding ignores data beyond the expected pixel count."""
        indices = decode_rle(bytes([0xCA, 4, 1, 1]), 6)
        self.assertEqual(list(indices), [4] * 6)

    def test_exhausted_stream_leaves_zeros(self):
        """Test a short stream leaves remaining indices at 0."""
        indices = decode_rle(bytes([3, 3]), 4)
        self.assertEqual(list(indices), [3, 3, 0, 0])

    def test_dangling_run_marker(self):
        """Test a run marker without its value byte ends decoding."""
        indices = decode_rle(bytes([5, 0xC4]), 4)
        self.assertEqual(list(indices), [5, 0, 0, 0])


class TestDecodePcx(unittest.TestCase):
    """Test PCX decoding into RGBA pixels."""

    def test_single_color_with_palette(self):
        """Test a 4x4 single colour image decodes to opaque palette colour."""
        image = decode_pcx(single_color_portrait(color=(200, 40, 10), index=5))

        self.assertIsInstance(image, DecodedImage)
        self.assertEqual((image.width, image.height), (4, 4))
        self.assertEqual(len(image.pixels), 4 * 4 * 4)
        for y in range(4):
            for x in range(4):
                self.assertEqual(image.pixel(x, y), (200, 40, 10, 255))

    def test_index_zero_is_transparent(self):
        """Test index 0 decodes to alpha 0 even when its palette colour is set."""
        palette = make_palette({0: (255, 0, 255), 1: (10, 20, 30)})
        data = make_pcx(2, 2, pixels=[0, 1, 1, 0], palette=palette)

        image = decode_pcx(data)

        self.assertEqual(image.pixel(0, 0)[3], 0)
        self.assertEqual(image.pixel(1, 1)[3], 0)
        self.assertEqual(image.pixel(1, 0), (10, 20, 30, 255))
        self.assertEqual(image.pixel(0, 1), (10, 20, 30, 255))

    def test_grayscale_fallback_without_palette(self):
        """Test missing palette falls back to a grayscale ramp."""
        data = make_pcx(3, 1, pixels=[0, 64, 200])

        image = decode_pcx(data)

        self.assertEqual(image.pixel(0, 0), (0, 0, 0, 0))
        self.assertEqual(image.pixel(1, 0), (64, 64, 64, 255))
        self.assertEqual(image.pixel(2, 0), (200, 200, 200, 255))

    def test_row_padding_is_cropped(self):
        """Test rows padded to bytes_per_line keep their pixels aligned."""
        palette = make_palette({1: (1, 1, 1), 2: (2, 2, 2), 3: (3, 3, 3)})
        data = make_pcx(3, 2, pixels=[1, 2, 3, 3, 2, 1], palette=palette, bytes_per_line=4)

        image = decode_pcx(data)

        self.assertEqual((image.width, image.height), (3, 2))
        self.assertEqual([image.pixel(x, 0)[0] for x in range(3)], [1, 2, 3])
        self.assertEqual([image.pixel(x, 1)[0] for x in range(3)], [3, 2, 1])

    @patch('ikemen_assets.sprites.pcx.decode_rle', wraps=decode_rle)
    def test_oversized_bytes_per_line_falls_back_to_width(self, mock_decode_rle):
        """Test a corrupt row stride is not used to size the index buffer."""
        palette = make_palette({1: (1, 1, 1), 2: (2, 2, 2), 3: (3, 3, 3)})
        data = bytearray(make_pcx(3, 2, pixels=[1, 2, 3, 3, 2, 1], palette=palette))
        data[66:68] = (65535).to_bytes(2, "little")

        image = decode_pcx(bytes(data))

        self.assertEqual(mock_decode_rle.call_args[0][1], 3 * 2)
        self.assertEqual([image.pixel(x, 0)[0] for x in range(3)], [1, 2, 3])
        self.assertEqual([image.pixel(x, 1)[0] for x in range(3)], [3, 2, 1])

    @patch('ikemen_assets.sprites.pcx.decode_rle', wraps=decode_rle)
    def test_large_box_with_corrupt_stride(self, mock_decode_rle):
        """Test a maximal box with a huge stride allocates only width x height indices."""
        data = bytearray(make_pcx(4, 4))
        data[8:12] = struct.pack("<HH", 1999, 1999)
        data[66:68] = (65535).to_bytes(2, "little")

        image = decode_pcx(bytes(data))

        self.assertEqual(mock_decode_rle.call_args[0][1], 2000 * 2000)
        self.assertEqual((image.width, image.height), (2000, 2000))

    def test_high_index_literal(self):
        """Test indices with the run bits set survive encoding."""
        palette = make_palette({0xC5: (9, 8, 7)})
        image = decode_pcx(make_pcx(1, 1, pixels=[0xC5], palette=palette))
        self.assertEqual(image.pixel(0, 0), (9, 8, 7, 255))

    def test_truncated_payload_keeps_dimensions(self):
        """Test a truncated stream still yields width x height pixels."""
        data = make_pcx(8, 8, fill=3)[:130]

        image = decode_pcx(data)

        self.assertEqual((image.width, image.height), (8, 8))
        self.assertEqual(len(image.pixels), 8 * 8 * 4)

    def test_too_short(self):
        """Test data shorter than a header is rejected."""
        self.assertIsNone(decode_pcx(b"\x0a" * 100))

    def test_implausible_size(self):
        """Test oversized headers are rejected."""
        data = make_pcx(4, 4)
        self.assertIsNone(decode_pcx(data, max_dimension=3))

    def test_inverted_bounding_box(self):
        """Test a bounding box with max below min is rejected."""
        data = bytearray(make_pcx(4, 4))
        data[4:6] = (10).to_bytes(2, "little")
        self.assertIsNone(decode_pcx(bytes(data)))

    def test_unsupported_bit_depth(self):
        """Test non 8-bit images are rejected."""
        self.assertIsNone(decode_pcx(make_pcx(2, 2, bits_per_pixel=4)))

    def test_to_image(self):
        """Test conversion to a Pillow image."""
        image = decode_pcx(single_color_portrait(color=(1, 2, 3))).to_image()

        self.assertEqual(image.mode, "RGBA")
        self.assertEqual(image.size, (4, 4))
        self.assertEqual(image.getpixel((2, 2)), (1, 2, 3, 255))

    def test_decoded_image_checks_buffer_size(self):
        """Test DecodedImage rejects a mismatched buffer."""
        with self.assertRaises(ValueError):
            DecodedImage(width=2, height=2, pixels=b"\x00" * 15)


if __name__ == '__main__':
    unittest.main()
