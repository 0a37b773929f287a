from __future__ import annotations

from pathlib import Path
from tempfile import TemporaryDirectory
import unittest

import numpy as np
from PIL import Image

import cli
from core.mosaic import pixelate


def _write_noise_png(path: Path, w: int = 12, h: int = 9) -> np.ndarray:
    rng = np.random.default_rng(5)
    arr = rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8)
    Image.fromarray(arr).save(path)
    return arr


class CliTests(unittest.TestCase):
    def test_whole_image_with_default_output_name(self) -> None:
        with TemporaryDirectory() as td:
            src = Path(td) / "pic.png"
            arr = _write_noise_png(src)
            rc = cli.main([str(src), "--block-size", "5"])
            out_path = Path(td) / "pic_mosaicked.png"
            self.assertEqual(rc, 0)
            self.assertTrue(out_path.exists())
            out = np.array(Image.open(out_path).convert("RGBA"))
        self.assertTrue(np.array_equal(out, pixelate(arr, 5)))

    def test_rect_with_preset(self) -> None:
        with TemporaryDirectory() as td:
            src = Path(td) / "pic.png"
            arr = _write_noise_png(src)
            dst = Path(td) / "out.png"
            rc = cli.main([str(src), "-o", str(dst), "--preset", "small", "--rect", "10", "8", "2", "1"])
            self.assertEqual(rc, 0)
            out = np.array(Image.open(dst).convert("RGBA"))

        expected = arr.copy()
        expected[1:8, 2:10] = pixelate(arr[1:8, 2:10], 5)
        self.assertTrue(np.array_equal(out, expected))

    def test_zero_area_rect_means_whole_image(self) -> None:
        with TemporaryDirectory() as td:
            src = Path(td) / "pic.png"
            arr = _write_noise_png(src)
            dst = Path(td) / "out.png"
            rc = cli.main([str(src), "-o", str(dst), "--block-size", "6", "--rect", "2", "2", "2", "2"])
            self.assertEqual(rc, 0)
            out = np.array(Image.open(dst).convert("RGBA"))
        self.assertTrue(np.array_equal(out, pixelate(arr, 6)))

    def test_missing_input(self) -> None:
        with TemporaryDirectory() as td:
            self.assertEqual(cli.main([str(Path(td) / "nope.png")]), 1)

    def test_undecodable_input(self) -> None:
        with TemporaryDirectory() as td:
            bad = Path(td) / "bad.png"
            bad.write_bytes(b"not an image")
            self.assertEqual(cli.main([str(bad)]), 1)

    def test_preset_and_block_size_are_exclusive(self) -> None:
        with self.assertRaises(SystemExit):
            cli.build_parser().parse_args(["x.png", "--preset", "large", "--block-size", "9"])


if __name__ == "__main__":
    unittest.main()
