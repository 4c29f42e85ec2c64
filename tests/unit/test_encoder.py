import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import support  # noqa: F401
from PIL import Image, ImageDraw

from makequote_renderer import EncodeError, RenderError, UnsupportedFormatError, decode, encode, list_formats
from makequote_renderer.encoder import normalize_format


def _canvas() -> Image.Image:
    image = Image.new("RGBA", (120, 80), (0, 0, 0, 255))
    draw = ImageDraw.Draw(image)
    draw.ellipse((10, 10, 70, 70), fill=(255, 81, 106, 255))
    draw.rectangle((80, 20, 110, 60), fill=(147, 147, 147, 255))
    return image


class EncoderTests(unittest.TestCase):
    def test_formats(self):
        self.assertEqual(list_formats(), ["jpeg", "jpg", "png", "webp"])
        self.assertEqual(normalize_format(".JPG"), "jpg")
        self.assertEqual(normalize_format(None), "jpeg")

    def test_jpeg_default(self):
        data = encode(_canvas())
        self.assertTrue(data.startswith(b"\xff\xd8"))
        image = decode(data)
        self.assertEqual(image.format, "JPEG")
        self.assertEqual(image.size, (120, 80))
        self.assertEqual(image.mode, "RGB")

    def test_png_keeps_pixels(self):
        canvas = _canvas()
        image = decode(encode(canvas, "png"))
        self.assertEqual(image.format, "PNG")
        self.assertEqual(image.getpixel((40, 40)), canvas.getpixel((40, 40)))

    def test_output_is_deterministic(self):
        for fmt in ("jpeg", "png"):
            with self.subTest(fmt=fmt):
                self.assertEqual(encode(_canvas(), fmt), encode(_canvas(), fmt))

    def test_unsupported_format(self):
        with self.assertRaises(UnsupportedFormatError) as ctx:
            encode(_canvas(), "gif")
        self.assertEqual(ctx.exception.format, "gif")
        self.assertIsInstance(ctx.exception, EncodeError)
        self.assertIsInstance(ctx.exception, RenderError)

    def test_decode_garbage(self):
        with self.assertRaises(EncodeError):
            decode(b"garbage")


if __name__ == "__main__":
    unittest.main()
