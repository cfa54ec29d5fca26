import json
import logging
import os
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .devices.focas_client import FocasMachineConfig

logger = logging.getLogger("Config")

CONFIG_ENV_VAR = "CNC_TRACKER_CONFIG"
DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config", "settings.json")


class TrackerSettings(BaseModel):
    """Runtime settings. Missing keys fall back to these defaults."""
    history_window_minutes: int = Field(10, gt=0)
    retention_minutes: int = Field(60, gt=0)
    retention_floor: int = Field(10, ge=0)

    # "none" = no device client bound (refresh fails with ConfigurationError)
    device_client: Literal["none", "mock", "focas"] = "mock"
    focas_machines: Dict[str, FocasMachineConfig] = Field(default_factory=dict)

    seed_machines: List[str] = Field(default_factory=list)
    auto_simulate: bool = False
    auto_simulate_interval_sec: float = Field(5.0, gt=0)

    # Display labels per status value, e.g. {"Running": "Çalışıyor"}
    status_labels: Dict[str, str] = Field(default_factory=dict)

    api_host: str = "0.0.0.0"
    api_port: int = 8000


def load_config(path: Optional[str] = None) -> TrackerSettings:
    """
    Load settings from JSON.

    Lookup order: explicit path, $CNC_TRACKER_CONFIG, bundled settings.json.
    A missing file yields the defaults; a malformed one raises.
    """
    config_path = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    try:
        with open(config_path, "r") as f:
            raw = json.load(f)
    except FileNotFoundError:
        logger.warning(f"Config file {config_path} not found, using defaults")
        return TrackerSettings()

    return TrackerSettings.model_validate(raw)
