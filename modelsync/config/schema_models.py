"""Data model for custom models, providers, model packs and plan settings."""

from collections import Counter
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..util.codec import canonical_json_bytes
from ..util.const import (
    ALL_ROLES, DEFAULTS, FALLBACK_ATTRS, OPTIONAL_ROLE_FALLBACKS, ROLE_PARAM_DEFAULTS,
    FallbackSlot, ModelRole,
)
from ..util.types import Result

VOLATILE_FIELDS = {"id", "created_at", "updated_at"}


def role_attr(role: ModelRole) -> str:
    return role.value.replace("-", "_")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    def dump(self) -> Dict[str, Any]:
        """JSON-ready dict in the on-disk key style."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ModelCompatibility(str, Enum):
    FULL = "full"
    TEXT_ONLY = "text-only"


class ModelOutputFormat(str, Enum):
    XML = "xml"
    TOOL_CALL_JSON = "tool-call-json"


class ModelProvider(str, Enum):
    OPENROUTER = "openrouter"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    DEEPSEEK = "deepseek"
    OLLAMA = "ollama"
    CUSTOM = "custom"


class BaseModelUsesProvider(CamelModel):
    provider: ModelProvider
    custom_provider: Optional[str] = None
    model_name: str = Field(min_length=1)

    @model_validator(mode="after")
    def _custom_needs_name(self) -> "BaseModelUsesProvider":
        if self.provider == ModelProvider.CUSTOM and not self.custom_provider:
            raise ValueError("customProvider is required when provider is 'custom'")
        return self


class BaseModelShared(CamelModel):
    max_tokens: int = Field(gt=0)
    max_output_tokens: int = Field(gt=0)
    reserved_output_tokens: int = Field(ge=0)
    default_max_convo_tokens: int = Field(default=0, ge=0)
    model_compatibility: ModelCompatibility = ModelCompatibility.FULL
    preferred_output_format: ModelOutputFormat = ModelOutputFormat.XML
    role_params_disabled: bool = False
    # Empty means usable in every role
    compatible_roles: List[ModelRole] = Field(default_factory=list)

    def supports_role(self, role: ModelRole) -> bool:
        return not self.compatible_roles or role in self.compatible_roles

    def base_config(self) -> "BaseModelShared":
        return BaseModelShared(**{name: getattr(self, name) for name in BaseModelShared.model_fields})


class CustomModel(BaseModelShared):
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_id: str = Field(min_length=1)
    publisher: str = ""
    description: str = ""
    providers: List[BaseModelUsesProvider] = Field(min_length=1)

    @property
    def key(self) -> str:
        return self.model_id


class CustomProvider(CamelModel):
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    name: str = Field(min_length=1)
    base_url: str = Field(min_length=1)
    api_key_env_var: Optional[str] = None

    @property
    def key(self) -> str:
        return self.name


class ModelRoleConfigSchema(CamelModel):
    """Declarative role config as written in the models file."""
    model_id: str = Field(min_length=1)
    temperature: Optional[float] = Field(default=None, ge=-2.0, le=2.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    reserved_output_tokens: Optional[int] = Field(default=None, ge=0)
    max_convo_tokens: Optional[int] = Field(default=None, gt=0)
    large_context_fallback: Optional["ModelRoleConfigSchema"] = None
    large_output_fallback: Optional["ModelRoleConfigSchema"] = None
    strong_model: Optional["ModelRoleConfigSchema"] = None
    error_fallback: Optional["ModelRoleConfigSchema"] = None

    def children(self) -> Iterator[Tuple[FallbackSlot, "ModelRoleConfigSchema"]]:
        for slot, attr in FALLBACK_ATTRS.items():
            child = getattr(self, attr)
            if child is not None:
                yield slot, child


class ModelPackSchema(CamelModel):
    name: str = Field(min_length=1)
    description: str = ""
    planner: ModelRoleConfigSchema
    architect: Optional[ModelRoleConfigSchema] = None
    coder: Optional[ModelRoleConfigSchema] = None
    plan_summary: ModelRoleConfigSchema
    builder: ModelRoleConfigSchema
    whole_file_builder: Optional[ModelRoleConfigSchema] = None
    namer: ModelRoleConfigSchema
    commit_message: ModelRoleConfigSchema
    exec_status: ModelRoleConfigSchema

    @property
    def key(self) -> str:
        return self.name

    def role_schemas(self) -> Iterator[Tuple[ModelRole, Optional[ModelRoleConfigSchema]]]:
        for role in ALL_ROLES:
            yield role, getattr(self, role_attr(role))


class ModelRoleConfig(CamelModel):
    """A role's model assignment plus its fallback configs.

    Each fallback slot owns its child exclusively; a node object may not
    appear twice in a tree.
    """
    role: ModelRole
    model_id: str = Field(min_length=1)
    base_model_config: BaseModelShared
    temperature: float = DEFAULTS["TEMPERATURE"]
    top_p: float = DEFAULTS["TOP_P"]
    reserved_output_tokens: Optional[int] = Field(default=None, ge=0)
    max_convo_tokens: Optional[int] = Field(default=None, gt=0)
    large_context_fallback: Optional["ModelRoleConfig"] = None
    large_output_fallback: Optional["ModelRoleConfig"] = None
    strong_model: Optional["ModelRoleConfig"] = None
    error_fallback: Optional["ModelRoleConfig"] = None

    @model_validator(mode="after")
    def _check_out_tree(self) -> "ModelRoleConfig":
        _check_exclusive_nodes([self])
        return self

    def children(self) -> Iterator[Tuple[FallbackSlot, "ModelRoleConfig"]]:
        for slot, attr in FALLBACK_ATTRS.items():
            child = getattr(self, attr)
            if child is not None:
                yield slot, child

    def to_schema(self) -> ModelRoleConfigSchema:
        # Sampling params equal to the role default are left implicit so a
        # pack read back from the server matches the file it came from
        default_temp, default_top_p = ROLE_PARAM_DEFAULTS[self.role]
        kwargs: Dict[str, Any] = {"model_id": self.model_id}
        if self.temperature != default_temp:
            kwargs["temperature"] = self.temperature
        if self.top_p != default_top_p:
            kwargs["top_p"] = self.top_p
        if self.reserved_output_tokens is not None:
            kwargs["reserved_output_tokens"] = self.reserved_output_tokens
        if self.max_convo_tokens is not None:
            kwargs["max_convo_tokens"] = self.max_convo_tokens
        for slot, child in self.children():
            kwargs[FALLBACK_ATTRS[slot]] = child.to_schema()
        return ModelRoleConfigSchema(**kwargs)


def _check_exclusive_nodes(roots: List[ModelRoleConfig]) -> None:
    seen = set()
    stack = list(roots)
    while stack:
        node = stack.pop()
        if id(node) in seen:
            raise ValueError("role config nodes must not be shared between slots or roles")
        seen.add(id(node))
        stack.extend(child for _, child in node.children())


class ModelPack(CamelModel):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    description: str = ""
    local_provider: Optional[str] = None
    planner: ModelRoleConfig
    architect: Optional[ModelRoleConfig] = None
    coder: Optional[ModelRoleConfig] = None
    plan_summary: ModelRoleConfig
    builder: ModelRoleConfig
    whole_file_builder: Optional[ModelRoleConfig] = None
    namer: ModelRoleConfig
    commit_message: ModelRoleConfig
    exec_status: ModelRoleConfig

    @model_validator(mode="after")
    def _check_roles_independent(self) -> "ModelPack":
        _check_exclusive_nodes([cfg for _, cfg in self.role_configs() if cfg is not None])
        return self

    def role_configs(self) -> Iterator[Tuple[ModelRole, Optional[ModelRoleConfig]]]:
        for role in ALL_ROLES:
            yield role, getattr(self, role_attr(role))

    def get_role(self, role: ModelRole) -> ModelRoleConfig:
        """Config used for ``role``, following optional-role fallbacks."""
        cfg = getattr(self, role_attr(role))
        if cfg is None:
            return getattr(self, role_attr(OPTIONAL_ROLE_FALLBACKS[role]))
        return cfg

    def to_schema(self) -> ModelPackSchema:
        kwargs: Dict[str, Any] = {"name": self.name, "description": self.description}
        for role, cfg in self.role_configs():
            if cfg is not None:
                kwargs[role_attr(role)] = cfg.to_schema()
        return ModelPackSchema(**kwargs)


class ModelsInput(CamelModel):
    """The models file: custom models, providers and model packs."""
    schema_url: Optional[str] = Field(default=None, alias="$schema")
    custom_models: List[CustomModel] = Field(default_factory=list)
    custom_providers: List[CustomProvider] = Field(default_factory=list)
    custom_model_packs: List[ModelPackSchema] = Field(default_factory=list)

    @field_validator("custom_models", "custom_providers", "custom_model_packs", mode="before")
    @classmethod
    def _null_is_empty(cls, v):
        return [] if v is None else v

    def is_empty(self) -> bool:
        return not (self.custom_models or self.custom_providers or self.custom_model_packs)

    def prepare_update(self) -> "ModelsInput":
        """Copy without server-assigned fields, tagged with the schema URL."""
        return ModelsInput(
            schema_url=DEFAULTS["SCHEMA_URL"],
            custom_models=[m.model_copy(update={f: None for f in VOLATILE_FIELDS}, deep=True)
                           for m in self.custom_models],
            custom_providers=[p.model_copy(update={f: None for f in VOLATILE_FIELDS}, deep=True)
                              for p in self.custom_providers],
            custom_model_packs=[mp.model_copy(deep=True) for mp in self.custom_model_packs],
        )

    def canonical_content(self) -> Dict[str, Any]:
        """User-visible entity content; ignores the schema tag."""
        return {
            "customModels": [entity_content(m) for m in self.custom_models],
            "customProviders": [entity_content(p) for p in self.custom_providers],
            "customModelPacks": [entity_content(mp) for mp in self.custom_model_packs],
        }

    def equals(self, other: "ModelsInput") -> bool:
        return canonical_json_bytes(self.canonical_content()) == canonical_json_bytes(other.canonical_content())

    def check_no_duplicates(self) -> Result[None]:
        groups = [
            ("model", [m.key for m in self.custom_models]),
            ("provider", [p.key for p in self.custom_providers]),
            ("model pack", [mp.key for mp in self.custom_model_packs]),
        ]
        lines = []
        duplicates: Dict[str, List[str]] = {}
        for kind, keys in groups:
            counts = Counter(keys)
            dups = [k for k in dict.fromkeys(keys) if counts[k] > 1]
            if dups:
                duplicates[kind] = dups
                lines.extend(f"• {kind} {k} appears {counts[k]} times" for k in dups)
        if lines:
            return Result.fail("models.duplicates", "\n".join(lines), duplicates=duplicates)
        return Result(ok=True)


def entity_content(entity: CamelModel) -> Dict[str, Any]:
    data = entity.model_dump(mode="json", by_alias=True, exclude_none=True,
                             exclude=VOLATILE_FIELDS & set(type(entity).model_fields))
    return data


class ModelOverrides(CamelModel):
    max_tokens: Optional[int] = Field(default=None, gt=0)
    max_convo_tokens: Optional[int] = Field(default=None, gt=0)
    reserved_output_tokens: Optional[int] = Field(default=None, ge=0)


class PlanSettings(CamelModel):
    model_pack: Optional[ModelPack] = None
    model_overrides: ModelOverrides = Field(default_factory=ModelOverrides)


ModelRoleConfigSchema.model_rebuild()
ModelRoleConfig.model_rebuild()
