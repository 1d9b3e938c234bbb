import os
from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional, Sequence, Tuple

from dotenv import load_dotenv
from PIL import Image


# Directory and payload order of the emitted container.
DEFAULT_RESOLUTIONS: Tuple[int, ...] = (256, 72, 48, 32, 16)

# Largest size a directory entry can describe (stored as 0).
MAX_RESOLUTION = 256

RESAMPLE_FILTERS = {
    "NEAREST": Image.Resampling.NEAREST,
    "BOX": Image.Resampling.BOX,
    "BILINEAR": Image.Resampling.BILINEAR,
    "HAMMING": Image.Resampling.HAMMING,
    "BICUBIC": Image.Resampling.BICUBIC,
    "LANCZOS": Image.Resampling.LANCZOS,
}


@dataclass(frozen=True)
class ResolutionSpec:
    """
    Ordered set of square target sizes.

    The first entry is the primary size, always sourced directly from the
    primary input. The last entry is the secondary size, which may optionally
    be sourced from its own input instead of being resampled.
    """

    sizes: Tuple[int, ...] = DEFAULT_RESOLUTIONS

    def __post_init__(self) -> None:
        sizes = tuple(self.sizes)
        if not sizes:
            raise ValueError("resolution list must not be empty")
        for size in sizes:
            if isinstance(size, bool) or not isinstance(size, int):
                raise ValueError(f"resolution {size!r} is not an integer")
            if not 1 <= size <= MAX_RESOLUTION:
                raise ValueError(
                    f"resolution {size} out of range 1..{MAX_RESOLUTION}"
                )
        if len(set(sizes)) != len(sizes):
            raise ValueError(f"duplicate resolutions in {sizes}")
        if sizes[0] != max(sizes):
            # Every other size is downsampled from the primary.
            raise ValueError(f"primary resolution {sizes[0]} is not the largest in {sizes}")
        object.__setattr__(self, "sizes", sizes)

    @classmethod
    def parse(cls, text: str) -> "ResolutionSpec":
        """Build a spec from a comma separated list such as ``"256,48,16"``."""
        parts = [p.strip() for p in text.split(",") if p.strip()]
        try:
            sizes = tuple(int(p) for p in parts)
        except ValueError:
            raise ValueError(f"invalid resolution list: {text!r}") from None
        return cls(sizes)

    @property
    def primary(self) -> int:
        return self.sizes[0]

    @property
    def secondary(self) -> int:
        return self.sizes[-1]

    @property
    def count(self) -> int:
        return len(self.sizes)

    def __len__(self) -> int:
        return len(self.sizes)

    def __iter__(self) -> Iterator[int]:
        return iter(self.sizes)

    def __getitem__(self, index: int) -> int:
        return self.sizes[index]


@dataclass(frozen=True)
class Settings:
    resolutions: ResolutionSpec = field(default_factory=ResolutionSpec)
    resample_filter: str = "LANCZOS"
    # Run alpha through the sRGB curve together with the color channels.
    alpha_uses_colorspace: bool = True

    def __post_init__(self) -> None:
        name = self.resample_filter.upper()
        if name not in RESAMPLE_FILTERS:
            raise ValueError(
                f"unknown resample filter {self.resample_filter!r}; "
                f"expected one of {', '.join(RESAMPLE_FILTERS)}"
            )
        object.__setattr__(self, "resample_filter", name)

    @property
    def pil_filter(self) -> Image.Resampling:
        return RESAMPLE_FILTERS[self.resample_filter]


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Read settings from the environment.

    A local .env file is loaded first when reading the process environment
    (e.g. ICOPACK_RESOLUTIONS=256,48,32,16). Passing ``env`` explicitly skips
    the .env lookup, which keeps tests isolated from the working directory.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    kwargs = {}

    resolutions = env.get("ICOPACK_RESOLUTIONS")
    if resolutions:
        try:
            kwargs["resolutions"] = ResolutionSpec.parse(resolutions)
        except ValueError as exc:
            raise ValueError(f"ICOPACK_RESOLUTIONS: {exc}") from exc

    resample_filter = env.get("ICOPACK_RESAMPLE_FILTER")
    if resample_filter:
        kwargs["resample_filter"] = resample_filter

    alpha_flag = env.get("ICOPACK_ALPHA_USES_COLORSPACE")
    if alpha_flag:
        kwargs["alpha_uses_colorspace"] = _parse_bool(
            "ICOPACK_ALPHA_USES_COLORSPACE", alpha_flag
        )

    try:
        return Settings(**kwargs)
    except ValueError as exc:
        raise ValueError(f"ICOPACK_RESAMPLE_FILTER: {exc}") from exc


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{name}: expected a boolean, got {value!r}")


def resolution_spec(sizes: Sequence[int]) -> ResolutionSpec:
    return sizes if isinstance(sizes, ResolutionSpec) else ResolutionSpec(tuple(sizes))
