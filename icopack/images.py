import io
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
from PIL import Image

from .config import ResolutionSpec, resolution_spec
from .errors import DimensionError, EncodeError, InputError, ResampleError

CHANNELS = 4

PathLike = Union[str, Path]


@dataclass(frozen=True)
class RawImage:
    """Tightly packed 8-bit RGBA pixels, 4 bytes per pixel."""

    width: int
    height: int
    pixels: bytes
    source: Optional[Path] = None

    def __post_init__(self) -> None:
        expected = self.width * self.height * CHANNELS
        if len(self.pixels) != expected:
            raise ValueError(
                f"{self.width}x{self.height} RGBA buffer needs {expected} bytes, "
                f"got {len(self.pixels)}"
            )

    @classmethod
    def from_pil(cls, img: Image.Image, source: Optional[Path] = None) -> "RawImage":
        rgba = img if img.mode == "RGBA" else img.convert("RGBA")
        return cls(rgba.width, rgba.height, rgba.tobytes(), source)

    def to_pil(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.pixels)

    def to_array(self) -> np.ndarray:
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(
            self.height, self.width, CHANNELS
        )


@dataclass(frozen=True)
class EncodedImage:
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class Resolution:
    """The raw and encoded buffers of one target size, released together."""

    size: int
    raw: RawImage
    encoded: EncodedImage


def load_source(path: PathLike, size: int) -> RawImage:
    """
    Decode an image file and check it is a ``size`` x ``size`` RGBA raster.

    Palette images carrying a transparency chunk are expanded to RGBA; any
    other mode without a real alpha channel is rejected.
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            img.load()
            if img.mode == "P" and "transparency" in img.info:
                img = img.convert("RGBA")
            width, height = img.size
            # A palette without transparency decodes to RGB.
            channels = 3 if img.mode == "P" else len(img.getbands())
            if width != size or height != size or img.mode != "RGBA":
                raise DimensionError(path, size, width, height, channels)
            return RawImage(width, height, img.tobytes(), source=path)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise InputError(path) from exc


def _srgb_to_linear(values: np.ndarray) -> np.ndarray:
    return np.where(
        values <= 0.04045,
        values / 12.92,
        np.power((values + 0.055) / 1.055, 2.4),
    )


def _linear_to_srgb(values: np.ndarray) -> np.ndarray:
    values = np.clip(values, 0.0, 1.0)
    return np.where(
        values <= 0.0031308,
        values * 12.92,
        1.055 * np.power(values, 1.0 / 2.4) - 0.055,
    )


def resample(
    raw: RawImage,
    size: int,
    *,
    resample_filter: Image.Resampling = Image.Resampling.LANCZOS,
    alpha_uses_colorspace: bool = True,
) -> RawImage:
    """
    Downsample ``raw`` to a ``size`` x ``size`` raster in linear light.

    Color is decoded through the sRGB curve and premultiplied by alpha before
    filtering so transparent pixels do not bleed color into visible edges.
    With ``alpha_uses_colorspace`` alpha goes through the same curve.
    """
    try:
        src = raw.to_array().astype(np.float32) / 255.0
        alpha = _srgb_to_linear(src[..., 3]) if alpha_uses_colorspace else src[..., 3]
        linear = np.empty_like(src)
        linear[..., :3] = _srgb_to_linear(src[..., :3]) * alpha[..., None]
        linear[..., 3] = alpha

        planes = []
        for channel in range(CHANNELS):
            plane = Image.fromarray(np.ascontiguousarray(linear[..., channel], dtype=np.float32))
            planes.append(np.asarray(plane.resize((size, size), resample_filter), dtype=np.float32))
        out = np.clip(np.stack(planes, axis=-1), 0.0, 1.0)

        out_alpha = out[..., 3]
        color = np.zeros_like(out[..., :3])
        np.divide(out[..., :3], out_alpha[..., None], out=color, where=out_alpha[..., None] > 0)

        result = np.empty_like(out)
        result[..., :3] = _linear_to_srgb(color)
        result[..., 3] = _linear_to_srgb(out_alpha) if alpha_uses_colorspace else out_alpha
        pixels = np.rint(result * 255.0).astype(np.uint8)
        pixels[pixels[..., 3] == 0] = 0
    except (ValueError, MemoryError, OSError) as exc:
        raise ResampleError(raw.width, size) from exc

    if pixels.shape != (size, size, CHANNELS):
        raise ResampleError(raw.width, size)
    return RawImage(size, size, pixels.tobytes())


def encode_png(raw: RawImage) -> EncodedImage:
    buf = io.BytesIO()
    try:
        raw.to_pil().save(buf, format="PNG")
    except (OSError, ValueError) as exc:
        raise EncodeError(raw.width) from exc
    data = buf.getvalue()
    if not data:
        raise EncodeError(raw.width)
    return EncodedImage(data)


def derive(
    primary: RawImage,
    secondary: Optional[RawImage],
    specs: ResolutionSpec,
    *,
    resample_filter: Image.Resampling = Image.Resampling.LANCZOS,
    alpha_uses_colorspace: bool = True,
) -> List[Resolution]:
    """
    Produce one (raw, encoded) pair per entry of ``specs``, in spec order.

    The primary raster and an explicitly supplied secondary raster are
    encoded as given; every other size is resampled from the primary.
    """
    specs = resolution_spec(specs)
    _check_source(primary, specs.primary)
    if secondary is not None:
        if specs.count < 2:
            raise ValueError("a secondary image needs at least two resolutions")
        _check_source(secondary, specs.secondary)

    last = specs.count - 1
    raws: List[RawImage] = [primary]
    for index in range(1, specs.count):
        if index == last and secondary is not None:
            raws.append(secondary)
        else:
            raws.append(
                resample(
                    primary,
                    specs[index],
                    resample_filter=resample_filter,
                    alpha_uses_colorspace=alpha_uses_colorspace,
                )
            )

    return [Resolution(size, raw, encode_png(raw)) for size, raw in zip(specs, raws)]


def derive_from_files(
    primary_path: PathLike,
    secondary_path: Optional[PathLike],
    specs: ResolutionSpec,
    **kwargs,
) -> List[Resolution]:
    specs = resolution_spec(specs)
    primary = load_source(primary_path, specs.primary)
    secondary = None
    if secondary_path is not None:
        if specs.count < 2:
            raise ValueError("a secondary image needs at least two resolutions")
        secondary = load_source(secondary_path, specs.secondary)
    return derive(primary, secondary, specs, **kwargs)


def _check_source(raw: RawImage, size: int) -> None:
    if raw.width != size or raw.height != size:
        raise DimensionError(
            raw.source or "<memory>", size, raw.width, raw.height, CHANNELS
        )
