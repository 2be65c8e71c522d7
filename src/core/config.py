from typing import Any, Optional
import json
import os
from pydantic import BaseModel, Field
from loguru import logger

# --- Settings Models ---
class GeneralSettings(BaseModel):
    debug_mode: bool = True
    log_dir: str = "logs"

class MongoSettings(BaseModel):
    host: str = 'localhost'
    port: int = 27017
    database_name: str = Field(default_factory=lambda: os.environ.get("DB_NAME", "albums"))
    collection: str = "albums"
    # Precomputed view listing owners with at least one public album
    public_owners_view: str = "publicAlbumsView"

class RedisSettings(BaseModel):
    url: str = "redis://localhost:6379/0"
    key_prefix: str = "mmt"

class SizeSettings(BaseModel):
    """Bounding-box geometries for the generated image variants."""
    landscape_big: str = "900x900"
    landscape_med: str = "600x600"
    landscape_sml: str = "350x350"
    portrait_big: str = "600x600"
    portrait_med: str = "400x400"
    portrait_sml: str = "350x350"
    thumbnail: str = "133x133"

class AlbumSettings(BaseModel):
    root_dir: Optional[str] = Field(default_factory=lambda: os.environ.get("ALBUMS_ROOT_DIR"))
    # Path segment under which everything is served publicly
    public_marker: str = "public"
    recent_stream: str = "albums:recent:10"
    recent_count: int = 10
    sizes: SizeSettings = Field(default_factory=SizeSettings)

class AppConfig(BaseModel):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    mongo: MongoSettings = Field(default_factory=MongoSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    albums: AlbumSettings = Field(default_factory=AlbumSettings)

# --- Manager ---
class ConfigManager:
    """
    Manages application configuration with persistence.
    """
    def __init__(self, filepath: str = "config.json"):
        self.filepath = filepath
        self._data = AppConfig()
        self._load()

    @property
    def data(self) -> AppConfig:
        return self._data

    def update(self, section: str, key: str, value: Any):
        """Update a setting, validate via Pydantic and autosave."""
        if not hasattr(self._data, section):
            raise ValueError(f"Invalid section: {section}")

        section_obj = getattr(self._data, section)
        if not hasattr(section_obj, key):
            raise ValueError(f"Invalid key: {key} in section {section}")

        updated = section_obj.model_validate({**section_obj.model_dump(), key: value})
        setattr(self._data, section, updated)
        self._save()

    def get(self, section: str, key: str) -> Any:
        section_obj = getattr(self._data, section)
        return getattr(section_obj, key)

    def _load(self):
        """Load settings from JSON or TOML file if present; otherwise keep defaults."""
        if os.path.isfile(self.filepath):
            try:
                if self.filepath.endswith('.toml'):
                    import tomllib
                    with open(self.filepath, "rb") as f:
                        raw = tomllib.load(f)
                else:
                    with open(self.filepath, "r", encoding="utf-8") as f:
                        raw = json.load(f)
                self._data = AppConfig.model_validate(raw)
            except Exception as e:
                logger.error(f"Failed to load config from {self.filepath}: {e}")
                self._save()
        else:
            self._save()

    def _save(self):
        """Persist current config to JSON file."""
        if self.filepath.endswith('.toml'):
            # tomllib is read-only, TOML configs are edited by hand
            return
        try:
            dirname = os.path.dirname(self.filepath)
            if dirname:
                os.makedirs(dirname, exist_ok=True)
            with open(self.filepath, "w", encoding="utf-8") as f:
                json.dump(self._data.model_dump(), f, indent=4)
        except Exception as e:
            logger.error(f"Failed to save config to {self.filepath}: {e}")
