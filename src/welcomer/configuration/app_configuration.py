from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
import yaml

from welcomer.configuration.handler_settings import AutoRoleSettings, WelcomeSettings
from welcomer.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

# Bundled handler modules shipped inside the package
DEFAULT_EVENTS_DIR = (Path(__file__).resolve().parents[1] / "events")

DEVELOPMENT = "development"
PRODUCTION = "production"

# One handler file family per environment: source in development,
# sourceless bytecode (compileall -b) in production.
HANDLER_EXTENSIONS = {
    DEVELOPMENT: ".py",
    PRODUCTION: ".pyc",
}


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes typed
    shortcuts for the environment mode, database, handler discovery and the
    bundled handlers' settings. Uses fcntl file locks for safe concurrent
    access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        """Read and parse the YAML file under a shared ``fcntl`` lock.

        Returns:
            Dict[str, Any]: The parsed mapping. An empty dict when the file is
            missing, cannot be parsed or does not hold a mapping; each case is
            logged at ERROR except an empty file.
        """
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def _section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key, {})
        return value if isinstance(value, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns an empty dict when the file is missing or unreadable.
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # Environment
    # --------------------------
    @property
    def environment(self) -> str:
        """Return ``development`` or ``production``.

        The ``WELCOMER_ENV`` environment variable wins over the ``environment``
        key of the YAML file. Anything unrecognised counts as production.
        """
        raw = os.getenv("WELCOMER_ENV") or self._data.get("environment") or PRODUCTION
        value = str(raw).strip().lower()
        if value in ("dev", "development"):
            return DEVELOPMENT
        return PRODUCTION

    @property
    def is_dev(self) -> bool:
        return self.environment == DEVELOPMENT

    # --------------------------
    # Database
    # --------------------------
    @property
    def database_path(self) -> Path:
        path = self._section("database").get("path") or "./data/app.db"
        return Path(str(path)).resolve()

    @property
    def busy_timeout(self) -> float:
        """Seconds a connection waits on a locked database before failing."""
        try:
            return float(self._section("database").get("busy_timeout", 5.0))
        except (TypeError, ValueError):
            return 5.0

    # --------------------------
    # Event handler discovery
    # --------------------------
    @property
    def events_directory(self) -> Path:
        directory = self._section("events").get("directory")
        if not directory:
            return DEFAULT_EVENTS_DIR
        return Path(str(directory)).resolve()

    @property
    def handler_extension(self) -> str:
        """File extension of handler modules for the active environment."""
        override = self._section("events").get("extension")
        if override:
            override = str(override)
            return override if override.startswith(".") else f".{override}"
        return HANDLER_EXTENSIONS[self.environment]

    # --------------------------
    # Handler settings
    # --------------------------
    @property
    def welcome(self) -> WelcomeSettings:
        return WelcomeSettings(self._section("welcome"))

    @property
    def auto_role(self) -> AutoRoleSettings:
        return AutoRoleSettings(self._section("auto_role"))

    @property
    def presence_activity(self) -> str:
        return str(self._section("presence").get("activity") or "the front door")


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
