import os
import re
import tomllib
from pathlib import Path

from ..commands.scan import ScanOptions

CONFIG_ENVIRONMENT_VARIABLE = 'HASHDUP_CONFIG'

_SIZE_PATTERN = re.compile(r'^\s*(\d+)\s*([KMG]?)i?B?\s*$', re.IGNORECASE)
_SIZE_UNITS = {'': 1, 'K': 1024, 'M': 1024 ** 2, 'G': 1024 ** 3}


def parse_size(value: int | str) -> int:
    """Parse a byte count such as 1048576, "1048576", "512K", "500M" or "2GiB".

    Suffixes are binary multiples. Raises ValueError for anything else.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid size: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Invalid size: {value!r}")
        return value

    match = _SIZE_PATTERN.match(str(value))
    if match is None:
        raise ValueError(f"Invalid size: {value!r}")
    return int(match.group(1)) * _SIZE_UNITS[match.group(2).upper()]


def _optional_int(value) -> int | None:
    return int(value) if value is not None else None


class ScanSettings:
    """Read-only view of a hashdup TOML configuration file.

    Example settings file:

        [scan]
        max_file_size = "500M"
        worker_count = 8

        [fingerprint]
        algorithm = "mmh3"
        length = 16

        [logging]
        path = "/var/log/hashdup.log"
        level = "DEBUG"

    Args:
        path: Settings file, or None for an empty configuration

    Raises:
        FileNotFoundError: path does not exist
        tomllib.TOMLDecodeError: path is not valid TOML
    """

    def __init__(self, path: str | os.PathLike | None = None):
        self._path = Path(path) if path is not None else None
        self._settings = {}

        if self._path is not None:
            with open(self._path, 'rb') as f:
                self._settings = tomllib.load(f)

    @classmethod
    def from_environment(cls, path: str | os.PathLike | None = None) -> 'ScanSettings':
        """Load settings from path, falling back to the file named by HASHDUP_CONFIG."""
        if path is None:
            path = os.environ.get(CONFIG_ENVIRONMENT_VARIABLE) or None
        return cls(path)

    @property
    def path(self) -> Path | None:
        return self._path

    def get(self, key: str, default=None):
        """Get a setting by dotted key, e.g. 'scan.worker_count', or default if absent."""
        value = self._settings

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def to_options(self, base: ScanOptions = ScanOptions()) -> ScanOptions:
        """Overlay the [scan] and [fingerprint] settings on base."""
        max_file_size = self.get('scan.max_file_size')
        return base._replace(
            max_file_size=parse_size(max_file_size) if max_file_size is not None else base.max_file_size,
            worker_count=int(self.get('scan.worker_count', base.worker_count)),
            progress_interval=int(self.get('scan.progress_interval', base.progress_interval)),
            queue_size=_optional_int(self.get('scan.queue_size', base.queue_size)),
            algorithm=str(self.get('fingerprint.algorithm', base.algorithm)),
            fingerprint_length=_optional_int(self.get('fingerprint.length', base.fingerprint_length)),
        )
