"""Runtime configuration for the ogcard service."""

import json
from pathlib import Path

CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.json"

DEFAULTS = {
    "backend_host": "0.0.0.0",
    "backend_port": 8787,
    "font_css_url": "https://fonts.googleapis.com/css2?family=Noto+Sans+JP:wght@700",
    "fetch_timeout": 15,
    "user_agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "log_level": "INFO",
}


def load_config(path: Path = CONFIG_PATH) -> dict:
    """Read the JSON config file and merge it over the defaults.

    A missing file is not an error; the service runs on defaults.
    """
    cfg = dict(DEFAULTS)
    if path.exists():
        cfg.update(json.loads(path.read_text()))
    return cfg


config = load_config()
