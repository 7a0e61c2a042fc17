from enum import Enum

class ModelRole(str, Enum):
    PLANNER = "planner"
    ARCHITECT = "architect"
    CODER = "coder"
    PLAN_SUMMARY = "plan-summary"
    BUILDER = "builder"
    WHOLE_FILE_BUILDER = "whole-file-builder"
    NAMER = "namer"
    COMMIT_MESSAGE = "commit-message"
    EXEC_STATUS = "exec-status"

# Render / traversal order
ALL_ROLES = list(ModelRole)

# Optional role -> role it falls back to when absent from a pack
OPTIONAL_ROLE_FALLBACKS = {
    ModelRole.ARCHITECT: ModelRole.PLANNER,
    ModelRole.CODER: ModelRole.PLANNER,
    ModelRole.WHOLE_FILE_BUILDER: ModelRole.BUILDER,
}

ROLE_DESCRIPTIONS = {
    ModelRole.PLANNER: "replies to prompts and makes plans",
    ModelRole.ARCHITECT: "decides which context to load for a task",
    ModelRole.CODER: "writes code to implement the plan",
    ModelRole.PLAN_SUMMARY: "summarizes conversations exceeding max-convo-tokens",
    ModelRole.BUILDER: "builds proposed changes into files",
    ModelRole.WHOLE_FILE_BUILDER: "builds whole files when targeted edits fail",
    ModelRole.NAMER: "names plans",
    ModelRole.COMMIT_MESSAGE: "writes commit messages",
    ModelRole.EXEC_STATUS: "decides whether to auto-continue",
}

class FallbackSlot(str, Enum):
    """Child slots of a role config, in traversal order."""
    LARGE_CONTEXT = "large-context"
    LARGE_OUTPUT = "large-output"
    STRONG = "strong"
    ERROR = "error"

# slot -> attribute name on ModelRoleConfig / ModelRoleConfigSchema
FALLBACK_ATTRS = {
    FallbackSlot.LARGE_CONTEXT: "large_context_fallback",
    FallbackSlot.LARGE_OUTPUT: "large_output_fallback",
    FallbackSlot.STRONG: "strong_model",
    FallbackSlot.ERROR: "error_fallback",
}

class RoleField(str, Enum):
    MODEL = "model"
    TEMPERATURE = "temperature"
    TOP_P = "top-p"
    RESERVED_OUTPUT_TOKENS = "reserved-output-tokens"

OVERRIDE_SETTINGS = ["max-tokens", "max-convo-tokens", "reserved-output-tokens"]

SETTING_DESCRIPTIONS = {
    "max-tokens": "overrides the planner's max input tokens",
    "max-convo-tokens": "conversation size that triggers summarization",
    "reserved-output-tokens": "tokens reserved for the planner's output",
}

DEFAULTS = {
    "TEMPERATURE": 0.3,
    "TOP_P": 0.8,
    "TEMPERATURE_RANGE": (-2.0, 2.0),
    "TOP_P_RANGE": (0.0, 1.0),
    "DEFAULT_MODEL_PACK": "daily-driver",
    "SCHEMA_URL": "https://modelsync.dev/schemas/models-input.schema.json",
    "HTTP_TIMEOUT_SEC": 30.0,
    "MAX_EDITOR_OPTS": 5,
}

# Default sampling params per role when a schema leaves them unset
ROLE_PARAM_DEFAULTS = {
    ModelRole.PLANNER: (0.3, 0.8),
    ModelRole.ARCHITECT: (0.3, 0.8),
    ModelRole.CODER: (0.3, 0.8),
    ModelRole.PLAN_SUMMARY: (0.2, 0.2),
    ModelRole.BUILDER: (0.1, 0.1),
    ModelRole.WHOLE_FILE_BUILDER: (0.1, 0.1),
    ModelRole.NAMER: (0.8, 0.5),
    ModelRole.COMMIT_MESSAGE: (0.8, 0.5),
    ModelRole.EXEC_STATUS: (0.1, 0.1),
}

def compact(s: str) -> str:
    """``Max-Convo_Tokens`` -> ``maxconvotokens``."""
    return s.replace("-", "").replace("_", "").replace(" ", "").lower()
