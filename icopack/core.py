from pathlib import Path
from typing import List, Optional, Union

from .config import Settings, load_settings
from .container import assemble
from .images import Resolution, derive_from_files

PathLike = Union[str, Path]


class IconBuilder:
    """
    Orchestrates one icon conversion:
    - decode and validate the primary (and optional secondary) source
    - resample and PNG-encode every configured resolution
    - assemble the container at the destination

    All image work completes before the destination is touched, so an image
    failure never leaves a file behind.
    """

    def __init__(self, settings: Optional[Settings] = None, verbose: bool = False) -> None:
        self.settings = settings or load_settings()
        self.verbose = verbose

    def derive(
        self,
        primary_path: PathLike,
        secondary_path: Optional[PathLike] = None,
    ) -> List[Resolution]:
        resolutions = derive_from_files(
            primary_path,
            secondary_path,
            self.settings.resolutions,
            resample_filter=self.settings.pil_filter,
            alpha_uses_colorspace=self.settings.alpha_uses_colorspace,
        )
        if self.verbose:
            for res in resolutions:
                origin = "resampled"
                if res.raw.source is not None:
                    origin = f"from '{res.raw.source}'"
                print(f"{res.size}x{res.size}: {res.encoded.size} bytes ({origin})")
        return resolutions

    def build(
        self,
        destination: PathLike,
        primary_path: PathLike,
        secondary_path: Optional[PathLike] = None,
    ) -> Path:
        resolutions = self.derive(primary_path, secondary_path)
        return assemble(
            [res.encoded for res in resolutions],
            self.settings.resolutions,
            destination,
        )
