import os
import stat
import struct
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple, Union

from .config import MAX_RESOLUTION, ResolutionSpec, resolution_spec
from .errors import AlreadyExistsError, ContainerWriteError
from .images import EncodedImage

PathLike = Union[str, Path]

HEADER_FORMAT = "<HHH"
ENTRY_FORMAT = "<BBBBHHII"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 6
ENTRY_SIZE = struct.calcsize(ENTRY_FORMAT)  # 16

ICON_TYPE = 1
COLOR_PLANES = 1
BITS_PER_PIXEL = 32


@dataclass(frozen=True)
class ContainerHeader:
    count: int
    reserved: int = 0
    type: int = ICON_TYPE

    def pack(self) -> bytes:
        return struct.pack(HEADER_FORMAT, self.reserved, self.type, self.count)

    @classmethod
    def unpack(cls, data: bytes) -> "ContainerHeader":
        reserved, kind, count = struct.unpack_from(HEADER_FORMAT, data)
        return cls(count=count, reserved=reserved, type=kind)


@dataclass(frozen=True)
class DirectoryEntry:
    width: int
    height: int
    size: int
    offset: int
    num_colors: int = 0  # non-palette
    reserved: int = 0
    color_planes: int = COLOR_PLANES
    bits_per_pixel: int = BITS_PER_PIXEL

    @property
    def resolution(self) -> int:
        """Width in pixels, undoing the 0-means-256 encoding."""
        return self.width or MAX_RESOLUTION

    def pack(self) -> bytes:
        return struct.pack(
            ENTRY_FORMAT,
            self.width,
            self.height,
            self.num_colors,
            self.reserved,
            self.color_planes,
            self.bits_per_pixel,
            self.size,
            self.offset,
        )

    @classmethod
    def unpack(cls, data: bytes, offset: int = 0) -> "DirectoryEntry":
        width, height, colors, reserved, planes, bpp, size, payload_offset = struct.unpack_from(
            ENTRY_FORMAT, data, offset
        )
        return cls(
            width=width,
            height=height,
            size=size,
            offset=payload_offset,
            num_colors=colors,
            reserved=reserved,
            color_planes=planes,
            bits_per_pixel=bpp,
        )


def size_byte(resolution: int) -> int:
    # A single byte cannot hold 256; the format reserves 0 for it.
    return 0 if resolution == MAX_RESOLUTION else resolution


def build_directory(
    encoded: Sequence[EncodedImage], specs: ResolutionSpec
) -> List[DirectoryEntry]:
    specs = resolution_spec(specs)
    if len(encoded) != specs.count:
        raise ValueError(
            f"{len(encoded)} encoded images for {specs.count} resolutions"
        )

    entries = []
    offset = HEADER_SIZE + ENTRY_SIZE * specs.count
    for resolution, image in zip(specs, encoded):
        entries.append(
            DirectoryEntry(
                width=size_byte(resolution),
                height=size_byte(resolution),
                size=image.size,
                offset=offset,
            )
        )
        offset += image.size
    return entries


def build_container(encoded: Sequence[EncodedImage], specs: ResolutionSpec) -> bytes:
    """Return the complete container: header, directory, then payloads."""
    entries = build_directory(encoded, specs)
    parts = [ContainerHeader(count=len(entries)).pack()]
    parts.extend(entry.pack() for entry in entries)
    parts.extend(image.data for image in encoded)
    return b"".join(parts)


def read_directory(data: bytes) -> Tuple[ContainerHeader, List[DirectoryEntry]]:
    """Parse the header and directory of a container produced by ``build_container``."""
    if len(data) < HEADER_SIZE:
        raise ValueError("data too short for an icon header")
    header = ContainerHeader.unpack(data)
    if header.reserved != 0 or header.type != ICON_TYPE:
        raise ValueError(
            f"not an icon container (reserved={header.reserved}, type={header.type})"
        )
    end = HEADER_SIZE + ENTRY_SIZE * header.count
    if len(data) < end:
        raise ValueError(f"directory of {header.count} entries is truncated")
    entries = [
        DirectoryEntry.unpack(data, HEADER_SIZE + ENTRY_SIZE * i)
        for i in range(header.count)
    ]
    return header, entries


def assemble(
    encoded: Sequence[EncodedImage],
    specs: ResolutionSpec,
    destination: PathLike,
) -> Path:
    """
    Write the container to ``destination``, which must not exist yet.

    The destination is claimed with an exclusive create, the content is
    written to a temporary file next to it and then renamed over the claimed
    name. On failure neither the temporary file nor the claimed name is left
    behind, so the destination is either absent or complete.
    """
    destination = Path(destination)
    specs = resolution_spec(specs)
    entries = build_directory(encoded, specs)

    try:
        with open(destination, "xb") as placeholder:
            mode = stat.S_IMODE(os.fstat(placeholder.fileno()).st_mode)
    except FileExistsError as exc:
        raise AlreadyExistsError(destination) from exc
    except OSError as exc:
        raise ContainerWriteError(destination, "open file for writing") from exc

    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            dir=destination.parent,
            prefix=f".{destination.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_path = Path(tmp.name)
            _write(tmp.write, destination, ContainerHeader(count=len(entries)).pack(), "write ICONDIR header")
            for index, entry in enumerate(entries):
                _write(tmp.write, destination, entry.pack(), f"write ICONDIRENTRY {index}")
            for resolution, image in zip(specs, encoded):
                _write(tmp.write, destination, image.data, f"write {resolution}x{resolution} image")
            tmp.flush()
            os.fsync(tmp.fileno())
        # NamedTemporaryFile is always 0600; keep the umask-derived mode.
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, destination)
    except BaseException as exc:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        destination.unlink(missing_ok=True)
        if isinstance(exc, OSError) and not isinstance(exc, ContainerWriteError):
            raise ContainerWriteError(destination, "write container") from exc
        raise

    return destination


def _write(write, destination: Path, data: bytes, step: str) -> None:
    try:
        written = write(data)
    except OSError as exc:
        raise ContainerWriteError(destination, step) from exc
    if written != len(data):
        raise ContainerWriteError(destination, step)
