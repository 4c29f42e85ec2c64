import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from support import avatar_image, avatar_png, load_test_font

from makequote_renderer import BytesAvatar, InvalidAvatarError, LetterAvatar, PathAvatar, get_theme, layout
from makequote_renderer.avatar import LETTER_COLORS, avatar_region_width, decode_avatar, fit_avatar, letter_avatar
from makequote_renderer.compositor import card_geometry, compose, transition_overlay
from makequote_renderer.models import FontVariant

CANVAS = (640, 360)
RED = (200, 30, 30, 255)


class AvatarTests(unittest.TestCase):
    def test_decode_bytes(self):
        image = decode_avatar(BytesAvatar(avatar_png()))
        self.assertEqual(image.mode, "RGBA")
        self.assertEqual(image.size, (80, 60))

    def test_decode_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "avatar.png"
            path.write_bytes(avatar_png())
            self.assertEqual(decode_avatar(PathAvatar(path)).size, (80, 60))

    def test_missing_file(self):
        with self.assertRaises(InvalidAvatarError):
            decode_avatar(PathAvatar(Path("/nonexistent/avatar.png")))

    def test_garbage_bytes(self):
        with self.assertRaises(InvalidAvatarError):
            decode_avatar(BytesAvatar(b"not an image at all"))

    def test_region_width(self):
        self.assertEqual(avatar_region_width(CANVAS, BytesAvatar(b"x")), 270)
        self.assertEqual(avatar_region_width((1920, 1080), BytesAvatar(b"x")), 810)
        self.assertEqual(avatar_region_width((300, 1000), BytesAvatar(b"x")), 150)
        self.assertEqual(avatar_region_width(CANVAS, LetterAvatar(1, "otto")), 213)

    def test_fit_is_square_crop_scaled_to_height(self):
        fitted = fit_avatar(avatar_image((80, 60)).convert("RGBA"), CANVAS)
        self.assertEqual(fitted.size, (270, 360))
        self.assertEqual(fitted.getpixel((10, 10)), RED)

    def test_fit_keeps_right_side_of_square(self):
        image = avatar_image((100, 100), (0, 0, 255)).convert("RGBA")
        for x in range(50, 100):
            for y in range(100):
                image.putpixel((x, y), (0, 255, 0, 255))
        fitted = fit_avatar(image, CANVAS)
        # The left quarter of the scaled square is cropped away.
        self.assertEqual(fitted.getpixel((fitted.width - 1, 180))[:3], (0, 255, 0))
        self.assertEqual(fitted.getpixel((5, 180))[:3], (0, 0, 255))

    def test_letter_avatar(self):
        source = LetterAvatar(user_id=9, name="ivan")
        image = letter_avatar(source, CANVAS, load_test_font(), FontVariant.BOLD)
        self.assertEqual(image.size, (213, 360))
        self.assertEqual(image.getpixel((0, 0))[3], 0)
        self.assertEqual(image.getpixel((106, 95)), LETTER_COLORS[9 % 7])
        self.assertEqual(image.getpixel((106, 180))[:3], (255, 255, 255))


class CompositorTests(unittest.TestCase):
    def setUp(self):
        self.font = load_test_font()
        self.avatar = BytesAvatar(avatar_png())
        self.geometry = card_geometry(CANVAS, self.avatar)

    def _layouts(self, username, quote):
        width = self.geometry.text_width
        return (
            layout(username, width, 24.0, self.font, variant=FontVariant.LIGHT),
            layout(quote, width, 40.0, self.font, variant=FontVariant.BOLD),
        )

    def test_transition_overlay(self):
        overlay = transition_overlay(90, 10, (0, 0, 0, 255))
        self.assertEqual(overlay.size, (30, 10))
        alphas = [overlay.getpixel((x, 0))[3] for x in range(30)]
        self.assertEqual(alphas[0], 0)
        self.assertEqual(alphas[-1], 255)
        self.assertEqual(alphas, sorted(alphas))

    def test_geometry(self):
        self.assertEqual(self.geometry.avatar_width, 270)
        self.assertEqual(self.geometry.text_left, 300)
        self.assertEqual(self.geometry.text_width, 310)
        self.assertEqual(self.geometry.username_top, 270)
        self.assertEqual(self.geometry.quote_max_height, 240)
        self.assertEqual(self.geometry.username_max_height, 90)
        self.assertEqual(self.geometry.quote_top(100), 80)
        self.assertEqual(self.geometry.quote_top(1000), 30)

    def test_layers(self):
        username, quote = self._layouts("@otto", "Hello there")
        canvas = compose(CANVAS, self.avatar, username, quote, font=self.font, theme=get_theme("Classic"))
        self.assertEqual(canvas.size, CANVAS)
        self.assertEqual(canvas.mode, "RGBA")

        self.assertEqual(canvas.getpixel((5, 180)), RED)
        self.assertEqual(canvas.getpixel((635, 5)), (0, 0, 0, 255))
        # Transition fades the avatar into the background at its right edge.
        self.assertLess(canvas.getpixel((268, 5))[0], 20)

        quote_band = canvas.crop((300, 0, 640, 180)).convert("L")
        self.assertGreater(quote_band.getextrema()[1], 200)

        username_band = canvas.crop((300, 270, 640, 360)).getchannel("R")
        self.assertTrue(100 <= username_band.getextrema()[1] <= 150)

    def test_empty_quote_draws_no_quote_glyphs(self):
        username, quote = self._layouts("@otto", "")
        canvas = compose(CANVAS, self.avatar, username, quote, font=self.font)
        self.assertEqual(canvas.crop((300, 0, 640, 180)).convert("L").getextrema(), (0, 0))
        self.assertGreater(canvas.crop((300, 270, 640, 360)).convert("L").getextrema()[1], 0)

    def test_theme_background(self):
        username, quote = self._layouts("@otto", "")
        canvas = compose(CANVAS, self.avatar, username, quote, font=self.font, theme=get_theme("Sepia"))
        self.assertEqual(canvas.getpixel((635, 5)), (0x1A, 0x14, 0x0E, 255))

    def test_letter_avatar_card(self):
        source = LetterAvatar(user_id=3, name="otto")
        geometry = card_geometry(CANVAS, source)
        username = layout("@otto", geometry.text_width, 40 / 3, self.font)
        quote = layout("hi", geometry.text_width, 40.0, self.font)
        canvas = compose(CANVAS, source, username, quote, font=self.font)
        self.assertEqual(canvas.getpixel((106, 95)), LETTER_COLORS[3])

    def test_invalid_avatar_fails_compose(self):
        username, quote = self._layouts("@otto", "hi")
        with self.assertRaises(InvalidAvatarError):
            compose(CANVAS, BytesAvatar(b"\x89PNG broken"), username, quote, font=self.font)


if __name__ == "__main__":
    unittest.main()
