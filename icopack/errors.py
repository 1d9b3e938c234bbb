from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class IconError(Exception):
    """
    Base class for every failure raised while building an icon container.

    Callers that only care about success/failure catch this one type; the
    subclasses carry the context (filenames, expected vs. actual dimensions)
    that describes which step failed.
    """


class InputError(IconError):
    def __init__(self, path: PathLike, message: Optional[str] = None) -> None:
        self.path = Path(path)
        super().__init__(message or f"Failed to load/decode '{self.path}'")


class DimensionError(InputError):
    def __init__(
        self,
        path: PathLike,
        expected: int,
        width: int,
        height: int,
        channels: int,
    ) -> None:
        self.expected = expected
        self.width = width
        self.height = height
        self.channels = channels
        super().__init__(
            path,
            f"'{path}': not suitable image format: width: {width}, height: {height}, "
            f"channels: {channels} (expected {expected}x{expected} RGBA)",
        )


class ResampleError(IconError):
    def __init__(self, source_size: int, size: int) -> None:
        self.source_size = source_size
        self.size = size
        super().__init__(
            f"Failed to downsample {source_size}x{source_size} to {size}x{size}"
        )


class EncodeError(IconError):
    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"Failed to PNG encode {size}x{size}")


class AlreadyExistsError(IconError, FileExistsError):
    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)
        super().__init__(f"'{self.path}': error: file already exists, refusing to overwrite it")


class ContainerWriteError(IconError, OSError):
    """Opening or writing the destination container failed."""

    def __init__(self, path: PathLike, step: str) -> None:
        self.path = Path(path)
        self.step = step
        super().__init__(f"'{self.path}': error: failed to {step}")
