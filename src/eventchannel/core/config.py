from typing import Any, Dict, Literal, Optional
import json
import os
from pydantic import BaseModel, ConfigDict, Field, StrictBool
from loguru import logger

# --- Option defaults ---
class OptionDefaults(BaseModel):
    model_config = ConfigDict(extra="forbid")

    wait: StrictBool = False
    once: StrictBool = False

class OptionOverrides(BaseModel):
    model_config = ConfigDict(extra="forbid")

    wait: Optional[StrictBool] = None
    once: Optional[StrictBool] = None

class EventOverrides(BaseModel):
    """Per-event settings; unset fields fall back to the channel defaults."""
    model_config = ConfigDict(extra="forbid")

    on: OptionOverrides = Field(default_factory=OptionOverrides)
    emit: OptionOverrides = Field(default_factory=OptionOverrides)

# --- Logging ---
class LoggingSettings(BaseModel):
    level: str = "INFO"
    log_dir: Optional[str] = None
    rotation: str = "10 MB"
    retention: str = "1 week"

class ChannelConfig(BaseModel):
    """
    Channel-wide configuration.

    Example (TOML):
        [emit]
        wait = true

        [events."app.ready".emit]
        once = true
    """
    on: OptionDefaults = Field(default_factory=OptionDefaults)
    emit: OptionDefaults = Field(default_factory=OptionDefaults)
    events: Dict[str, EventOverrides] = Field(default_factory=dict)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def resolve(self, side: Literal["on", "emit"], event: str, **explicit: Any) -> Dict[str, Any]:
        """
        Merge option values for one registration.

        Precedence: explicit keyword (not None) > per-event override > channel default.
        Keys other than the defaulted flags (e.g. on_reply) pass through untouched.
        """
        defaults: OptionDefaults = getattr(self, side)
        values = defaults.model_dump()
        overrides = self.events.get(event)
        if overrides is not None:
            for key, value in getattr(overrides, side).model_dump().items():
                if value is not None:
                    values[key] = value
        for key, value in explicit.items():
            if value is not None:
                values[key] = value
        return values

# --- Persistence ---
def load_config(filepath: str) -> ChannelConfig:
    """Load settings from a JSON or TOML file; missing or broken files give defaults."""
    if not os.path.isfile(filepath):
        logger.debug(f"No config at {filepath}, using defaults")
        return ChannelConfig()
    try:
        if filepath.endswith('.toml'):
            import tomllib
            with open(filepath, "rb") as f:
                raw = tomllib.load(f)
        else:
            with open(filepath, "r", encoding="utf-8") as f:
                raw = json.load(f)
        return ChannelConfig.model_validate(raw)
    except Exception as e:
        logger.error(f"Failed to load config from {filepath}: {e}")
        return ChannelConfig()

def save_config(config: ChannelConfig, filepath: str) -> None:
    """Persist config as JSON."""
    dirname = os.path.dirname(filepath)
    if dirname:
        os.makedirs(dirname, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(config.model_dump(), f, indent=4)
