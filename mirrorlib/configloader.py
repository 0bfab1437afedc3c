from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from mirrorlib.exceptions import ConfigException
import yaml

LOG_FORMATS = ("color", "plain", "json")


@dataclass
class MirrorConfig:
    rsync_binary : str = "rsync"
    log_format : str = "color"
    timezone : str | None = None
    service_name : str = "repomirror"

    def zone(self) -> ZoneInfo | None:
        if self.timezone is None:
            return None
        return ZoneInfo(self.timezone)


def load_config(config_path: Path | None = None) -> MirrorConfig:
    """
    Read the optional YAML config. Without a path, defaults are used
    and nothing is read from disk.
    """
    if config_path is None:
        return MirrorConfig()
    config_path = Path(config_path).expanduser()
    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
    except OSError as e:
        raise ConfigException(f"Could not read config. Config path: {config_path}.") from e
    except yaml.YAMLError as e:
        raise ConfigException(f"Config is not valid YAML. Config path: {config_path}.") from e

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ConfigException(f"Config must be a mapping. Config path: {config_path}.")

    mirrorConfig = MirrorConfig(
        rsync_binary = str(config.get("RSYNC_BINARY", "rsync")),
        log_format = str(config.get("LOG_FORMAT", "color")),
        timezone = config.get("TIMEZONE"),
        service_name = str(config.get("SERVICE_NAME", "repomirror")),
    )
    if mirrorConfig.log_format not in LOG_FORMATS:
        raise ConfigException(
            f"LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}. Config path: {config_path}.")
    if mirrorConfig.timezone is not None:
        try:
            mirrorConfig.zone()
        except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
            raise ConfigException(f"Unknown TIMEZONE {mirrorConfig.timezone!r}. Config path: {config_path}.") from e
    return mirrorConfig
