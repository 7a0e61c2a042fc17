import json
import os
import yaml
from pathlib import Path
from typing import Any, Dict, List

from pydantic import ValidationError

from .schema_client import ClientCfg
from .schema_models import ModelsInput
from .discovery import ConfigDiscovery
from .merge import ConfigMerger
from ..util.logging import log
from ..util.types import Result, ErrorInfo

CLIENT_FILE = "client.yaml"

ENV_OVERRIDES = {
    "MODELSYNC_API_URL": "api_url",
    "MODELSYNC_TOKEN": "token",
    "MODELSYNC_ORG_ID": "org_id",
    "MODELSYNC_CLOUD": "is_cloud",
    "MODELSYNC_PLAN_ID": "plan_id",
    "MODELSYNC_BRANCH": "branch",
    "MODELSYNC_MODELS_FILE": "models_file",
}

def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file, return empty dict if file doesn't exist."""
    return (yaml.safe_load(path.read_text()) or {}) if path.exists() else {}

def env_overrides() -> Dict[str, Any]:
    return {field: os.environ[var] for var, field in ENV_OVERRIDES.items() if os.environ.get(var)}

def load_client_config(start_cwd: str) -> Result[ClientCfg]:
    """Merge client.yaml across the .modelsync stack; environment wins."""
    try:
        stack_result = ConfigDiscovery(start_cwd).discover_stack()
        if not stack_result.ok:
            return Result(ok=False, error=stack_result.error)

        layers: List[Dict[str, Any]] = [env_overrides()]
        for root in stack_result.value:
            layers.append(load_yaml(Path(root) / CLIENT_FILE))

        merged = ConfigMerger().merge_dicts(layers)
        log("DEBUG", "config", "client_config_loaded", layers=len(stack_result.value))
        return Result(ok=True, value=ClientCfg(**merged))
    except (OSError, yaml.YAMLError, ValidationError) as e:
        return Result(ok=False, error=ErrorInfo("config.load_failed", str(e)))

def format_validation_errors(err: ValidationError) -> str:
    lines = []
    for item in err.errors():
        loc = ".".join(str(part) for part in item["loc"]) or "(root)"
        lines.append(f"• {loc}: {item['msg']}")
    return "\n".join(lines)

def parse_models_json(data: bytes) -> Result[ModelsInput]:
    """Parse and validate the models file; every offending item is reported."""
    try:
        raw = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Result(ok=False, error=ErrorInfo("models.invalid", f"Malformed JSON: {e}"))

    if not isinstance(raw, dict):
        return Result(ok=False, error=ErrorInfo("models.invalid", "Models file must contain a JSON object"))

    try:
        doc = ModelsInput.model_validate(raw)
    except ValidationError as e:
        return Result(ok=False, error=ErrorInfo("models.invalid", format_validation_errors(e),
                                                {"count": e.error_count()}))
    return Result(ok=True, value=doc)
