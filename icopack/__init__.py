"""
Multi-resolution icon (.ico) builder.

Modules:
- config: resolution list and resampling settings
- images: source decoding, sRGB-aware downsampling and PNG encoding
- container: icon header/directory layout and atomic file assembly
- core: end-to-end orchestration
- errors: failure kinds raised by all of the above
"""

from .config import DEFAULT_RESOLUTIONS, ResolutionSpec, Settings, load_settings
from .container import assemble, build_container, read_directory
from .core import IconBuilder
from .errors import (
    AlreadyExistsError,
    ContainerWriteError,
    DimensionError,
    EncodeError,
    IconError,
    InputError,
    ResampleError,
)
from .images import derive, derive_from_files

__all__ = [
    "DEFAULT_RESOLUTIONS",
    "ResolutionSpec",
    "Settings",
    "load_settings",
    "assemble",
    "build_container",
    "read_directory",
    "IconBuilder",
    "AlreadyExistsError",
    "ContainerWriteError",
    "DimensionError",
    "EncodeError",
    "IconError",
    "InputError",
    "ResampleError",
    "derive",
    "derive_from_files",
]
