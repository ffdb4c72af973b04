"""Configuration helpers for the Closet Stylist service."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_REASONING_API_URL = "https://api.siliconflow.cn/v1"
DEFAULT_REASONING_MODEL = "Qwen/Qwen2.5-72B-Instruct-128K"
DEFAULT_VISION_MODEL = "Qwen/Qwen2.5-VL-32B-Instruct"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
DEFAULT_RENDERING_API_URL = "https://ark.cn-beijing.volces.com/api/v3"
DEFAULT_RENDERING_MODEL = "doubao-seedream-4-5-251128"
DEFAULT_RENDER_SIZE = "2K"
REASONING_PROVIDERS = ("chat_completions", "gemini")


@dataclass
class ClosetConfig:
    """Configuration values for the outfit composition pipeline.

    Each external service gets its own endpoint, credentials and timeout so the
    clients can be constructed independently and injected into the pipeline.
    """

    reasoning_provider: str = "chat_completions"
    reasoning_api_url: str = DEFAULT_REASONING_API_URL
    reasoning_api_key: Optional[str] = None
    reasoning_model: str = DEFAULT_REASONING_MODEL
    reasoning_vision_model: str = DEFAULT_VISION_MODEL
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    rendering_api_url: str = DEFAULT_RENDERING_API_URL
    rendering_api_key: Optional[str] = None
    rendering_model: str = DEFAULT_RENDERING_MODEL
    render_size: str = DEFAULT_RENDER_SIZE
    reasoning_timeout_seconds: float = 30.0
    rendering_timeout_seconds: float = 60.0
    item_store_path: Optional[str] = None
    environment: str | None = None

    def __post_init__(self) -> None:
        provider = self.reasoning_provider.strip().lower()
        if provider not in REASONING_PROVIDERS:
            raise ValueError(
                f"Unsupported reasoning provider '{self.reasoning_provider}'. Allowed: {list(REASONING_PROVIDERS)}"
            )
        self.reasoning_provider = provider
        self.reasoning_api_url = self.reasoning_api_url.rstrip("/")
        self.rendering_api_url = self.rendering_api_url.rstrip("/")

    @classmethod
    def from_env(cls) -> "ClosetConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific files live in ``config/environments/<env>.yaml`` by
        default and are merged with environment variables so that API keys can be
        injected by the runtime instead of being committed.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("CLOSET_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        def get_seconds(key: str, default: float) -> float:
            raw = get_value(key)
            if raw in (None, ""):
                return default
            try:
                return float(raw)
            except ValueError as exc:
                raise ValueError(f"{key} must be a number of seconds, got '{raw}'") from exc

        return cls(
            reasoning_provider=str(get_value("reasoning_provider", "chat_completions") or "chat_completions"),
            reasoning_api_url=str(get_value("reasoning_api_url", DEFAULT_REASONING_API_URL) or DEFAULT_REASONING_API_URL),
            reasoning_api_key=get_value("reasoning_api_key"),
            reasoning_model=str(get_value("reasoning_model", DEFAULT_REASONING_MODEL) or DEFAULT_REASONING_MODEL),
            reasoning_vision_model=str(
                get_value("reasoning_vision_model", DEFAULT_VISION_MODEL) or DEFAULT_VISION_MODEL
            ),
            gemini_api_key=get_value("google_api_key"),
            gemini_model=str(get_value("gemini_model", DEFAULT_GEMINI_MODEL) or DEFAULT_GEMINI_MODEL),
            rendering_api_url=str(get_value("rendering_api_url", DEFAULT_RENDERING_API_URL) or DEFAULT_RENDERING_API_URL),
            rendering_api_key=get_value("rendering_api_key"),
            rendering_model=str(get_value("rendering_model", DEFAULT_RENDERING_MODEL) or DEFAULT_RENDERING_MODEL),
            render_size=str(get_value("render_size", DEFAULT_RENDER_SIZE) or DEFAULT_RENDER_SIZE),
            reasoning_timeout_seconds=get_seconds("reasoning_timeout_seconds", 30.0),
            rendering_timeout_seconds=get_seconds("rendering_timeout_seconds", 60.0),
            item_store_path=get_value("item_store_path"),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a minimal YAML/INI-style config without external dependencies."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config


__all__ = ["ClosetConfig", "REASONING_PROVIDERS"]
