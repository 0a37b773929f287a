from __future__ import annotations

import io
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

EXPORT_SUFFIX = "_mosaicked"
DEFAULT_EXPORT_NAME = "mosaic-image.png"
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".webp", ".gif", ".tif", ".tiff")


def load_image_rgba(path: str) -> Image.Image:
    with Image.open(path) as img:
        # Convert to RGBA for consistent alpha work
        return img.convert("RGBA")


def pil_to_np_rgba(img: Image.Image) -> np.ndarray:
    arr = np.array(img.convert("RGBA"), dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise ValueError("Expected RGBA image")
    return arr


def np_rgba_to_pil(arr: np.ndarray) -> Image.Image:
    arr = np.ascontiguousarray(arr, dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise ValueError("Expected HxWx4 array")
    # HxWx4 uint8 is decoded as RGBA
    return Image.fromarray(arr)


def save_image(path: str, img_rgba: Image.Image) -> None:
    ext = Path(path).suffix.lower()
    if ext in {".jpg", ".jpeg"}:
        # JPG has no alpha, so flatten onto white.
        rgba = img_rgba.convert("RGBA")
        flat = Image.new("RGB", rgba.size, (255, 255, 255))
        flat.paste(rgba, mask=rgba.split()[3])
        flat.save(path, quality=95)
        return
    if not ext:
        img_rgba.save(path, format="PNG")
        return
    # PNG and the other lossless formats keep alpha
    img_rgba.save(path)


def encode_png(img_rgba: Image.Image) -> bytes:
    buf = io.BytesIO()
    img_rgba.save(buf, format="PNG")
    return buf.getvalue()


def suggested_export_name(source_name: Optional[str]) -> str:
    if not source_name:
        return DEFAULT_EXPORT_NAME
    src = Path(source_name)
    if not src.stem:
        return DEFAULT_EXPORT_NAME
    if not src.suffix and src.stem.startswith("."):
        # ".png" is an extension with no base name
        if src.stem.lower() in IMAGE_EXTENSIONS:
            return f"{Path(DEFAULT_EXPORT_NAME).stem}{src.stem}"
        return DEFAULT_EXPORT_NAME
    suffix = src.suffix if src.suffix.lower() in IMAGE_EXTENSIONS else ".png"
    return f"{src.stem}{EXPORT_SUFFIX}{suffix}"
