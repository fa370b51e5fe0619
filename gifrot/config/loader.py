import os
import yaml
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from gifrot.domain.errors import ConfigError
from .models import AccountConfig, AppConfig

def load_config(config_path: Path) -> AppConfig:
    """Loads YAML config and parses it into AppConfig Pydantic model."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    return AppConfig(**data)

def load_account_token(account: AccountConfig, env_file: Optional[Path] = None) -> str:
    """Reads the account token from the environment (a .env file is honoured)."""
    load_dotenv(dotenv_path=env_file)
    token = os.getenv(account.token_env, "").strip()
    if not token:
        raise ConfigError(f"Environment variable {account.token_env} is not set")
    return token
