import os
import tomllib
from pathlib import Path

CONFIG_ENV = 'DUPAUDIT_CONFIG'


class AuditSettings:
    """Read-only view of an optional TOML settings file.

    The file is looked up from the explicit path, then from the DUPAUDIT_CONFIG
    environment variable. Without either, every get() returns its default.
    Recognized keys, all optional:

        [scan]
        mode = "sha256"
        exclude = ["*.tmp", "/data/cache"]
        sample_size = 65536
        sample_threshold = 1048576

        [display]
        max_files = 10

        [processor]
        concurrency = 4

        [logging]
        path = "/var/log/dupaudit.log"
        level = "INFO"

    Example:
        settings = AuditSettings(Path('dupaudit.toml'))
        max_files = settings.get('display.max_files', 10)
    """

    def __init__(self, config_path: Path | None = None):
        if config_path is None:
            env_path = os.environ.get(CONFIG_ENV)
            if env_path:
                config_path = Path(env_path)

        self._config_path = config_path
        self._settings = {}

        if config_path is not None:
            with open(config_path, 'rb') as f:
                self._settings = tomllib.load(f)

    @property
    def config_path(self) -> Path | None:
        return self._config_path

    def get(self, key: str, default=None):
        """Get a value by dotted key, e.g. 'scan.mode' reads settings['scan']['mode'].

        Returns default when any part of the key path is missing or an
        intermediate value is not a table.
        """
        value = self._settings
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_int(self, key: str, default: int | None = None) -> int | None:
        value = self.get(key, default)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            raise ValueError(f"setting {key} must be an integer, got {value!r}")
        return value

    def get_list(self, key: str) -> list[str]:
        value = self.get(key, [])
        if isinstance(value, str):
            return [value]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"setting {key} must be a list of strings, got {value!r}")
        return value
