import json
from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "ynap"
SETTINGS_PATH = CONFIG_DIR / "settings.json"

DEFAULT_BANKS_DIR = CONFIG_DIR / "banks"

DEFAULTS = {
    "banks_dir": str(DEFAULT_BANKS_DIR),
    "log_level": "WARNING",
    "workers": 4,
}


def load_settings() -> dict:
    if SETTINGS_PATH.exists():
        with open(SETTINGS_PATH) as f:
            saved = json.loads(f.read())
        return {**DEFAULTS, **saved}
    return dict(DEFAULTS)


def save_settings(settings: dict) -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with open(SETTINGS_PATH, "w") as f:
        f.write(json.dumps(settings, indent=2) + "\n")


def get_banks_dir() -> Path:
    return Path(load_settings()["banks_dir"])
