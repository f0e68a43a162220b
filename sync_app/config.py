"""Configuration helpers for the wardrobe sync pipeline."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import List, Optional

from dotenv import load_dotenv

from sync_app.errors import ConfigurationError

STORE_BACKENDS = ("sqlite", "supabase")
DEFAULT_IMAGES_PATH = "./public/images/wardrobe"
DEFAULT_DOTENV_FILES = (".env.local", ".env")


@dataclass
class SyncConfig:
    """Configuration values for a sync run.

    Secrets (the Supabase service role key, the admin email) come from the
    environment or a dotenv file and are never echoed back by ``__repr__``.
    """

    supabase_url: Optional[str] = None
    service_role_key: Optional[str] = None
    admin_user_id: Optional[str] = None
    admin_user_email: Optional[str] = None
    store_backend: str = "sqlite"
    wardrobe_db_path: str = "data/wardrobe.db"
    wardrobe_data_path: str = "data/wardrobe.json"
    outfit_data_path: str = "data/outfits.json"
    images_path: str = DEFAULT_IMAGES_PATH
    log_level: str = "INFO"
    environment: str | None = None

    def __repr__(self) -> str:
        return (
            f"SyncConfig(store_backend={self.store_backend!r}, environment={self.environment!r}, "
            f"supabase_url_set={bool(self.supabase_url)}, service_role_key_set={bool(self.service_role_key)}, "
            f"admin_user_id_set={bool(self.admin_user_id)}, admin_user_email_set={bool(self.admin_user_email)})"
        )

    @classmethod
    def from_env(cls, dotenv_files: tuple = DEFAULT_DOTENV_FILES) -> "SyncConfig":
        """Build a config from dotenv files, environment variables and an optional config file.

        Dotenv files never override variables that are already set. A minimal
        ``key: value`` file named by ``APP_CONFIG_PATH`` (or
        ``config/environments/<APP_ENV>.yaml``) supplies defaults underneath the
        environment.
        """

        for dotenv_file in dotenv_files:
            if Path(dotenv_file).is_file():
                load_dotenv(dotenv_file, override=False)

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("SYNC_CONFIG_DIR", "config/environments"))
        file_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            file_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, file_config.get(key, default))

        supabase_url = get_value("supabase_url") or get_value("next_public_supabase_url")

        return cls(
            supabase_url=supabase_url,
            service_role_key=get_value("supabase_service_role_key"),
            admin_user_id=get_value("admin_user_id"),
            admin_user_email=get_value("admin_user_email"),
            store_backend=str(get_value("sync_store_backend", "sqlite") or "sqlite").lower(),
            wardrobe_db_path=str(get_value("wardrobe_db_path", "data/wardrobe.db")),
            wardrobe_data_path=str(get_value("wardrobe_data_path", "data/wardrobe.json")),
            outfit_data_path=str(get_value("outfit_data_path", "data/outfits.json")),
            images_path=str(get_value("wardrobe_images_path", DEFAULT_IMAGES_PATH)),
            log_level=str(get_value("log_level", "INFO")),
            environment=env_name,
        )

    def validate(self) -> "SyncConfig":
        """Check that the selected backend has what it needs."""

        if self.store_backend not in STORE_BACKENDS:
            raise ConfigurationError(
                f"Unknown store backend '{self.store_backend}'",
                {"allowed": list(STORE_BACKENDS)},
            )
        if self.store_backend == "supabase":
            missing: List[str] = []
            if not self.supabase_url:
                missing.append("SUPABASE_URL")
            if not self.service_role_key:
                missing.append("SUPABASE_SERVICE_ROLE_KEY")
            if missing:
                raise ConfigurationError(
                    "Missing required environment variables", {"missing_vars": missing}
                )
        return self

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


__all__ = ["SyncConfig", "STORE_BACKENDS"]
