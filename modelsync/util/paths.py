import os
from pathlib import Path

CONFIG_DIR_NAME = ".modelsync"
CUSTOM_MODELS_FILE = "custom-models.json"
HASH_SUFFIX = ".hash"

def expand_user_vars(path: str) -> str:
    return str(Path(os.path.expandvars(path)).expanduser())

def home_config_dir() -> Path:
    override = os.environ.get("MODELSYNC_HOME")
    if override:
        return Path(expand_user_vars(override))
    return Path.home() / CONFIG_DIR_NAME

def default_models_path() -> Path:
    return home_config_dir() / CUSTOM_MODELS_FILE

def sidecar_path(models_path: Path) -> Path:
    """``<path>.hash`` next to the models file."""
    return models_path.with_name(models_path.name + HASH_SUFFIX)
