"""
YAML configuration with .env loading, ${VAR} substitution and optional reload on file change.
"""
import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# ${NAME} or $NAME anywhere in a string value
_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)")
_ENV_LINE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$")

# Sections filled in from defaults when the file leaves them out. `agenda` is not
# merged: a missing agenda.sources key means sources are managed in the DB.
_MERGED_SECTIONS = ("logging", "database", "api")


class ConfigChangeHandler(FileSystemEventHandler):
    """Reloads the config when its file is written or replaced (editors often save via rename)."""

    def __init__(self, config: "Config", cooldown: float = 1.0):
        self.config = config
        self.cooldown = cooldown
        self.last_reload = 0.0

    def _maybe_reload(self, path: str) -> None:
        if Path(path).resolve() != self.config.config_file:
            return
        now = time.time()
        if now - self.last_reload < self.cooldown:
            return
        self.last_reload = now
        self.config.reload()

    def on_modified(self, event):
        if not event.is_directory:
            self._maybe_reload(event.src_path)

    def on_created(self, event):
        if not event.is_directory:
            self._maybe_reload(event.src_path)

    def on_moved(self, event):
        if not event.is_directory:
            self._maybe_reload(event.dest_path)


class Config:
    def __init__(self, config_path: Optional[str] = None, watch: bool = False):
        self.change_callbacks: List[Callable[[Dict[str, Any]], None]] = []
        self.observer = None
        self.data: Dict[str, Any] = {}
        self._loading = False

        if config_path:
            self.config_file = Path(config_path).expanduser().resolve()
        else:
            self.config_file = (Path.cwd() / "config.yaml").resolve()
        self.config_dir = self.config_file.parent
        logger.debug(f"Config file: {self.config_file}")

        self._load_env_file()
        self._ensure_config_exists()
        self.data = self._read() or self._get_default_config()

        if watch:
            self.start_watching()

    # --- Reload ---

    def start_watching(self) -> None:
        """Start a watchdog observer on the config directory."""
        if self.observer is not None:
            return
        self.observer = Observer()
        self.observer.schedule(ConfigChangeHandler(self), str(self.config_dir), recursive=False)
        self.observer.start()
        logger.info(f"Watching {self.config_file} for changes")

    def register_change_callback(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        """callback(new_data) runs after every reload, on the watcher thread."""
        self.change_callbacks.append(callback)

    def reload(self) -> None:
        """Re-read the file; keep the previous data if it is unreadable. Callbacks always run."""
        if self._loading:
            return
        self._loading = True
        try:
            # Writers may still be flushing when the event arrives
            time.sleep(0.1)
            new_data = self._read()
            if new_data is None:
                logger.warning("Keeping previous configuration")
            else:
                self._log_config_changes(self.data, new_data)
                self.data = new_data
            for callback in self.change_callbacks:
                try:
                    callback(self.data)
                except Exception:
                    logger.exception(f"Config change callback {getattr(callback, '__name__', callback)} failed")
        finally:
            self._loading = False

    def _log_config_changes(self, old: Dict[str, Any], new: Dict[str, Any], path: str = "") -> None:
        for key in sorted(set(old) | set(new), key=str):
            where = f"{path}.{key}" if path else str(key)
            if key not in new:
                logger.info(f"Config removed: {where}")
            elif key not in old:
                logger.info(f"Config added: {where} = {new[key]!r}")
            elif isinstance(old[key], dict) and isinstance(new[key], dict):
                self._log_config_changes(old[key], new[key], where)
            elif old[key] != new[key]:
                logger.info(f"Config changed: {where}: {old[key]!r} -> {new[key]!r}")

    def cleanup(self) -> None:
        """Stop the file observer"""
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    # --- Loading ---

    def _get_default_config(self) -> Dict[str, Any]:
        return {
            "logging": {
                "level": "INFO",
                "file": str(self.config_dir / "agenda_board.log")
            },
            "database": {
                "path": str(self.config_dir / "agendas.db")
            },
            "api": {
                "enabled": True,
                "host": "127.0.0.1",
                "port": 8765
            },
            "agenda": {
                "timezone": None,  # None = server local time
                "tolerance": 5,
                "archive_prefix": "Archive_",
                "extract_interval": 3600,  # seconds
                "archive_time": "23:00",  # agenda timezone
                "backend": {
                    "type": "google_slides",
                    "client_secret_path": "${GOOGLE_SLIDES_CLIENT_SECRET}",
                    "token_file": str(self.config_dir / "slides_token.json")
                },
                "sources": []
            }
        }

    def _ensure_config_exists(self) -> None:
        """Write the default config if the file is missing"""
        if self.config_file.exists():
            return
        self.config_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Creating default config file: {self.config_file}")
        self.config_file.write_text(yaml.safe_dump(self._get_default_config(), sort_keys=False))

    def _load_env_file(self) -> None:
        """Export KEY=VALUE lines from .env (config dir first, then cwd); existing env wins."""
        env_file = next(
            (p for p in (self.config_dir / ".env", Path.cwd() / ".env") if p.is_file()),
            None,
        )
        if env_file is None:
            return
        logger.info(f"Loading environment variables from: {env_file}")
        try:
            lines = env_file.read_text().splitlines()
        except OSError as e:
            logger.warning(f"Could not read {env_file}: {e}")
            return
        for line in lines:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            match = _ENV_LINE.match(line)
            if not match:
                continue
            key, value = match.groups()
            os.environ.setdefault(key, value.strip().strip('"').strip("'"))

    def _substitute_env_vars(self, data: Any) -> Any:
        """Replace ${VAR} / $VAR references in string values; unknown variables are left as written."""
        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}
        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]
        if isinstance(data, str):
            return _ENV_REF.sub(lambda m: os.environ.get(m.group(1) or m.group(2), m.group(0)), data)
        return data

    def _read(self) -> Optional[Dict[str, Any]]:
        """Parse the file into config data, or None if it cannot be used."""
        try:
            with open(self.config_file) as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading config {self.config_file}: {e}")
            return None
        if not isinstance(raw, dict):
            logger.error(f"Invalid config {self.config_file}: root must be a mapping")
            return None

        data = self._substitute_env_vars(raw)
        defaults = self._get_default_config()
        for name in _MERGED_SECTIONS:
            section = data.get(name)
            data[name] = {**defaults[name], **section} if isinstance(section, dict) else defaults[name]

        if data["logging"].get("file"):
            data["logging"]["file"] = os.path.expanduser(data["logging"]["file"])
        return data

    def get_section(self, name: str) -> Dict[str, Any]:
        """Get a top-level config section, or an empty dict"""
        section = self.data.get(name)
        return section if isinstance(section, dict) else {}
