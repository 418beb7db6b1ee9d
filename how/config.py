import os
import toml
import logging
from dataclasses import dataclass, field
from typing import Optional, Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = os.path.expanduser("~/.config/how")
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_FALLBACK_MODEL = "gemini-2.0-flash"
DEFAULT_MAX_ATTEMPTS = 5

# Environment variables consulted for each key, in order.
ENV_KEYS: Dict[str, tuple] = {
    "api_key": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "model": ("GEMINI_MODEL",),
    "fallback_model": ("HOW_FALLBACK_MODEL",),
    "max_attempts": ("HOW_MAX_ATTEMPTS",),
    "shell": ("SHELL",),
    "log_dir": ("HOW_LOG_DIR",),
    "verbose": ("HOW_VERBOSE",),
}


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _to_positive_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _default_shell() -> Optional[str]:
    return None if os.name == "nt" else "/bin/sh"


@dataclass
class Config:
    """
    Settings and stored credentials for the CLI.

    Values come from environment variables first, then the TOML config file,
    then built-in defaults. The API key and model are the exception: values saved
    with `how --config` win over the environment.
    """

    config_file: str = field(
        default_factory=lambda: os.environ.get(
            "HOW_CONFIG_FILE", os.path.join(DEFAULT_CONFIG_DIR, "config.toml")
        )
    )
    _file_config: dict = field(init=False, repr=False)

    api_key: Optional[str] = field(init=False)
    model: str = field(init=False)
    fallback_model: str = field(init=False)
    max_attempts: int = field(init=False)
    shell: Optional[str] = field(init=False)
    log_dir: str = field(init=False)
    verbose: bool = field(init=False)

    def __post_init__(self):
        """Post-initialization to resolve every setting."""
        self._file_config = self._load_config_from_file()
        self._resolve()

    @property
    def config_dir(self) -> str:
        return os.path.dirname(os.path.abspath(self.config_file))

    def _resolve(self):
        self.api_key = self._file_config.get("api_key") or self._get_config("api_key")
        self.model = self._file_config.get("model") or self._get_config("model", DEFAULT_MODEL)
        self.fallback_model = self._get_config("fallback_model", DEFAULT_FALLBACK_MODEL)
        self.max_attempts = _to_positive_int(
            self._get_config("max_attempts", DEFAULT_MAX_ATTEMPTS), DEFAULT_MAX_ATTEMPTS
        )
        self.shell = self._get_config("shell", _default_shell())
        self.log_dir = self._get_config("log_dir", os.path.join(self.config_dir, "logs"))
        self.verbose = _to_bool(self._get_config("verbose", False))

    def _load_config_from_file(self) -> dict:
        """Loads configuration from the TOML file."""
        if not os.path.exists(self.config_file):
            return {}
        try:
            with open(self.config_file, "r") as f:
                return toml.load(f)
        except (toml.TomlDecodeError, IOError) as e:
            logger.warning(f"Could not read config file at {self.config_file}. Error: {e}")
            return {}

    def _get_config(self, key: str, default: Optional[Any] = None) -> Any:
        """
        Get a configuration value, prioritizing environment variables,
        then the config file, and finally a default value.
        """
        # 1. Check environment variables
        for env_key in ENV_KEYS.get(key, ()):
            value = os.environ.get(env_key)
            if value:
                return value

        # 2. Check config file
        value = self._file_config.get(key)
        if value not in (None, ""):
            return value

        # 3. Return default
        return default

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """Returns a resolved setting, or `default` when it is unset."""
        value = getattr(self, key, None) if key in ENV_KEYS else self._get_config(key)
        return default if value is None else value

    def set(self, key: str, value: Any):
        """
        Stores a value in the config file and refreshes the resolved settings.

        Raises:
            IOError: If the config file cannot be written.
        """
        os.makedirs(self.config_dir, exist_ok=True)
        self._file_config[key] = value
        with open(self.config_file, "w") as f:
            toml.dump(self._file_config, f)
        logger.info(f"Saved '{key}' to {self.config_file}")
        self._resolve()

    def __str__(self) -> str:
        """Return string representation of the configuration."""
        config_dict = self.__dict__.copy()
        if self.api_key:
            config_dict["api_key"] = f"{self.api_key[:4]}...{self.api_key[-4:]}" if len(self.api_key) > 8 else "****"
        del config_dict["_file_config"]  # Don't print the raw file contents
        return str(config_dict)
