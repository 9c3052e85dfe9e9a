import tomllib
import shutil
import re
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".homeschool"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"


def _env_bool(name: str, default: Any) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


def load_config() -> Dict[str, Any]:
    """Load config from ~/.homeschool/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()  # Load .env for overrides (e.g., REDIS_URL env var)
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    rewards_cfg = config.get("rewards", {})
    config["rewards"] = {
        "base_coins": int(os.getenv("REWARD_BASE_COINS", rewards_cfg.get("base_coins", 10))),
        "streak_step": int(os.getenv("REWARD_STREAK_STEP", rewards_cfg.get("streak_step", 5))),
        "streak_cap": int(os.getenv("REWARD_STREAK_CAP", rewards_cfg.get("streak_cap", 25))),
        "completion_bonus": int(os.getenv(
            "REWARD_COMPLETION_BONUS", rewards_cfg.get("completion_bonus", 50)
        )),
        "max_attempts": int(os.getenv("REWARD_MAX_ATTEMPTS", rewards_cfg.get("max_attempts", 3))),
    }
    cache_cfg = config.get("cache", {})
    config["cache"] = {
        "enabled": _env_bool("CACHE_ENABLED", cache_cfg.get("enabled", True)),
        "url": os.getenv("REDIS_URL", cache_cfg.get("url", "redis://localhost:6379/0")),
        "ttl_seconds": int(os.getenv("CACHE_TTL_SECONDS", cache_cfg.get("ttl_seconds", 60))),
    }
    auth_cfg = config.get("auth", {})
    config["auth"] = {
        "session_secret": os.getenv("SESSION_SECRET", auth_cfg.get("session_secret", "")),
        "session_minutes": int(os.getenv("SESSION_MINUTES", auth_cfg.get("session_minutes", 720))),
    }
    logging_cfg = config.get("logging", {})
    config["logging"] = {
        "level": os.getenv("LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
    }
    return config

def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('cache', 'url')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value


def set_session_secret(secret: str) -> None:
    """Persist the session signing secret into config.toml."""
    load_config()
    text = CONFIG_PATH.read_text()
    if "[auth]" not in text:
        text = text.rstrip() + f'\n\n[auth]\nsession_secret = "{secret}"\n'
        CONFIG_PATH.write_text(text)
        return

    def update_section(match: re.Match) -> str:
        section = match.group(1)
        rest = match.group(2)
        if re.search(r"^session_secret\s*=", section, flags=re.MULTILINE):
            section = re.sub(
                r"^session_secret\s*=.*$",
                f'session_secret = "{secret}"',
                section,
                flags=re.MULTILINE,
            )
        else:
            lines = section.rstrip().splitlines()
            insert_at = 1 if lines else 0
            lines.insert(insert_at, f'session_secret = "{secret}"')
            section = "\n".join(lines) + "\n"
        return section + rest

    text = re.sub(r"(?ms)(^\[auth\].*?)(^\[|\Z)", update_section, text)
    CONFIG_PATH.write_text(text)
