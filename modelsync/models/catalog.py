"""Built-in models and model packs, merged with a session's custom ones."""

from typing import Dict, List, Optional

from ..config.schema_models import (
    BaseModelUsesProvider, CustomModel, ModelPack, ModelPackSchema, ModelProvider,
    ModelRoleConfig, ModelRoleConfigSchema, ModelOutputFormat, role_attr,
)
from ..util.const import DEFAULTS, FALLBACK_ATTRS, ROLE_PARAM_DEFAULTS, ModelRole
from ..util.logging import log
from ..util.types import Result


def _builtin(model_id: str, provider: ModelProvider, model_name: str, max_tokens: int,
             max_output: int, reserved: int, convo: int = 0, **extra) -> CustomModel:
    return CustomModel(
        model_id=model_id,
        publisher=model_id.split("/", 1)[0],
        max_tokens=max_tokens,
        max_output_tokens=max_output,
        reserved_output_tokens=reserved,
        default_max_convo_tokens=convo,
        providers=[
            BaseModelUsesProvider(provider=provider, model_name=model_name),
            BaseModelUsesProvider(provider=ModelProvider.OPENROUTER, model_name=model_id),
        ] if provider not in (ModelProvider.OPENROUTER, ModelProvider.OLLAMA) else [
            BaseModelUsesProvider(provider=provider, model_name=model_name),
        ],
        **extra,
    )


BUILT_IN_MODELS: List[CustomModel] = [
    _builtin("anthropic/claude-sonnet-4", ModelProvider.ANTHROPIC, "claude-sonnet-4-20250514",
             200000, 64000, 40000, 15000),
    _builtin("anthropic/claude-opus-4", ModelProvider.ANTHROPIC, "claude-opus-4-20250514",
             200000, 32000, 20000, 15000),
    _builtin("openai/gpt-4.1", ModelProvider.OPENAI, "gpt-4.1", 1047576, 32768, 32768, 75000),
    _builtin("openai/gpt-4.1-mini", ModelProvider.OPENAI, "gpt-4.1-mini", 1047576, 32768, 32768, 75000),
    _builtin("openai/o4-mini-medium", ModelProvider.OPENAI, "o4-mini", 200000, 100000, 40000, 15000,
             role_params_disabled=True),
    _builtin("openai/o3-high", ModelProvider.OPENAI, "o3", 200000, 100000, 40000, 15000,
             role_params_disabled=True),
    _builtin("google/gemini-2.5-pro", ModelProvider.GOOGLE, "gemini-2.5-pro", 1048576, 65535, 40000, 75000),
    _builtin("deepseek/r1", ModelProvider.DEEPSEEK, "deepseek-reasoner", 128000, 32000, 20000, 10000),
    _builtin("deepseek/r1-hidden", ModelProvider.DEEPSEEK, "deepseek-reasoner", 128000, 32000, 20000, 10000),
    _builtin("deepseek/v3-0324", ModelProvider.DEEPSEEK, "deepseek-chat", 128000, 8000, 8000, 10000),
    _builtin("mistralai/devstral-small", ModelProvider.OPENROUTER, "mistralai/devstral-small",
             128000, 32000, 16000,
             preferred_output_format=ModelOutputFormat.TOOL_CALL_JSON,
             compatible_roles=[ModelRole.CODER, ModelRole.BUILDER, ModelRole.WHOLE_FILE_BUILDER]),
    _builtin("ollama/qwen3-32b", ModelProvider.OLLAMA, "qwen3:32b", 40000, 8000, 8000, 10000),
]


def _pack(name: str, description: str, **roles: ModelRoleConfigSchema) -> ModelPackSchema:
    return ModelPackSchema(name=name, description=description, **roles)


def _cfg(model_id: str, **kw) -> ModelRoleConfigSchema:
    return ModelRoleConfigSchema(model_id=model_id, **kw)


# Packs that need a locally running provider; schemas carry no such field
LOCAL_PROVIDER_PACKS: Dict[str, str] = {"ollama": "ollama"}

BUILT_IN_PACK_SCHEMAS: List[ModelPackSchema] = [
    _pack(
        "daily-driver",
        "Mix of models for a balance of capability, speed and cost",
        planner=_cfg("anthropic/claude-sonnet-4",
                     large_context_fallback=_cfg("google/gemini-2.5-pro",
                                                 large_context_fallback=_cfg("openai/gpt-4.1"))),
        coder=_cfg("anthropic/claude-sonnet-4",
                   large_context_fallback=_cfg("openai/gpt-4.1")),
        plan_summary=_cfg("openai/o4-mini-medium"),
        builder=_cfg("openai/o4-mini-medium",
                     error_fallback=_cfg("openai/gpt-4.1")),
        whole_file_builder=_cfg("openai/o4-mini-medium",
                                large_output_fallback=_cfg("openai/gpt-4.1")),
        namer=_cfg("openai/gpt-4.1-mini"),
        commit_message=_cfg("openai/gpt-4.1-mini"),
        exec_status=_cfg("openai/o4-mini-medium"),
    ),
    _pack(
        "reasoning",
        "Like daily-driver, with a reasoning model for planning",
        planner=_cfg("openai/o3-high",
                     large_context_fallback=_cfg("google/gemini-2.5-pro")),
        coder=_cfg("anthropic/claude-sonnet-4"),
        plan_summary=_cfg("openai/o4-mini-medium"),
        builder=_cfg("openai/o4-mini-medium"),
        namer=_cfg("openai/gpt-4.1-mini"),
        commit_message=_cfg("openai/gpt-4.1-mini"),
        exec_status=_cfg("openai/o4-mini-medium"),
    ),
    _pack(
        "strong",
        "Capable models for complex tasks",
        planner=_cfg("anthropic/claude-opus-4",
                     large_context_fallback=_cfg("google/gemini-2.5-pro"),
                     strong_model=_cfg("openai/o3-high")),
        coder=_cfg("anthropic/claude-sonnet-4"),
        plan_summary=_cfg("openai/o4-mini-medium"),
        builder=_cfg("openai/o3-high"),
        namer=_cfg("openai/gpt-4.1-mini"),
        commit_message=_cfg("openai/gpt-4.1-mini"),
        exec_status=_cfg("openai/o3-high"),
    ),
    _pack(
        "cheap",
        "Cheaper models for simpler tasks",
        planner=_cfg("openai/gpt-4.1-mini"),
        plan_summary=_cfg("openai/gpt-4.1-mini"),
        builder=_cfg("openai/gpt-4.1-mini"),
        namer=_cfg("openai/gpt-4.1-mini"),
        commit_message=_cfg("openai/gpt-4.1-mini"),
        exec_status=_cfg("openai/gpt-4.1-mini"),
    ),
    _pack(
        "oss",
        "Open source models",
        planner=_cfg("deepseek/r1"),
        coder=_cfg("deepseek/v3-0324"),
        plan_summary=_cfg("deepseek/v3-0324"),
        builder=_cfg("deepseek/r1-hidden"),
        whole_file_builder=_cfg("mistralai/devstral-small"),
        namer=_cfg("deepseek/v3-0324"),
        commit_message=_cfg("deepseek/v3-0324"),
        exec_status=_cfg("deepseek/r1-hidden"),
    ),
    _pack(
        "gemini-planner",
        "Gemini 2.5 Pro for planning, default models for other roles",
        planner=_cfg("google/gemini-2.5-pro"),
        coder=_cfg("anthropic/claude-sonnet-4"),
        plan_summary=_cfg("openai/o4-mini-medium"),
        builder=_cfg("openai/o4-mini-medium"),
        namer=_cfg("openai/gpt-4.1-mini"),
        commit_message=_cfg("openai/gpt-4.1-mini"),
        exec_status=_cfg("openai/o4-mini-medium"),
    ),
    _pack(
        "opus-planner",
        "Claude Opus 4 for planning, default models for other roles",
        planner=_cfg("anthropic/claude-opus-4",
                     large_context_fallback=_cfg("google/gemini-2.5-pro")),
        coder=_cfg("anthropic/claude-sonnet-4"),
        plan_summary=_cfg("openai/o4-mini-medium"),
        builder=_cfg("openai/o4-mini-medium"),
        namer=_cfg("openai/gpt-4.1-mini"),
        commit_message=_cfg("openai/gpt-4.1-mini"),
        exec_status=_cfg("openai/o4-mini-medium"),
    ),
    _pack(
        "ollama",
        "Local models served by Ollama",
        planner=_cfg("ollama/qwen3-32b"),
        plan_summary=_cfg("ollama/qwen3-32b"),
        builder=_cfg("ollama/qwen3-32b"),
        namer=_cfg("ollama/qwen3-32b"),
        commit_message=_cfg("ollama/qwen3-32b"),
        exec_status=_cfg("ollama/qwen3-32b"),
    ),
]


class ModelCatalog:
    """Built-in plus custom models and packs for one session."""

    def __init__(self, custom_models: Optional[List[CustomModel]] = None,
                 custom_packs: Optional[List[ModelPack]] = None, is_cloud: bool = False) -> None:
        self.is_cloud = is_cloud
        self.custom_models = list(custom_models or [])
        self.custom_packs = list(custom_packs or [])
        self._models: Dict[str, CustomModel] = {m.model_id: m for m in BUILT_IN_MODELS}
        for model in self.custom_models:
            if model.model_id in self._models:
                log("DEBUG", "catalog", "custom_model_shadows_builtin", model_id=model.model_id)
            self._models[model.model_id] = model
        self._builtin_packs: Optional[List[ModelPack]] = None

    def all_models(self) -> List[CustomModel]:
        return list(self._models.values())

    def get_model(self, model_id: str) -> Optional[CustomModel]:
        return self._models.get(model_id)

    def compatible_model_ids(self, role: ModelRole) -> List[str]:
        return [m.model_id for m in self._models.values() if m.supports_role(role)]

    def builtin_packs(self) -> List[ModelPack]:
        if self._builtin_packs is None:
            packs = []
            for schema in BUILT_IN_PACK_SCHEMAS:
                res = self.resolve_pack(schema, local_provider=LOCAL_PROVIDER_PACKS.get(schema.name))
                if not res.ok:
                    raise RuntimeError(f"built-in model pack {schema.name} is invalid: {res.error}")
                packs.append(res.value)
            self._builtin_packs = packs
        if self.is_cloud:
            # Local providers can't be reached from a hosted backend
            return [p for p in self._builtin_packs if not p.local_provider]
        return list(self._builtin_packs)

    def model_packs(self) -> List[ModelPack]:
        return self.builtin_packs() + self.custom_packs

    def find_pack(self, name: str) -> Optional[ModelPack]:
        """Built-in packs match case-insensitively; custom packs exactly."""
        for pack in self.builtin_packs():
            if pack.name.lower() == name.lower():
                return pack
        for pack in self.custom_packs:
            if pack.name == name:
                return pack
        return None

    def default_pack(self) -> ModelPack:
        pack = self.find_pack(DEFAULTS["DEFAULT_MODEL_PACK"])
        return pack.model_copy(deep=True)

    def resolve_role_config(self, schema: ModelRoleConfigSchema, role: ModelRole) -> Result[ModelRoleConfig]:
        model = self.get_model(schema.model_id)
        if model is None:
            return Result.fail("settings.unknown_model", f"Unknown model '{schema.model_id}' for role {role.value}",
                               model_id=schema.model_id, role=role.value)

        default_temp, default_top_p = ROLE_PARAM_DEFAULTS[role]
        kwargs = {
            "role": role,
            "model_id": schema.model_id,
            "base_model_config": model.base_config(),
            "temperature": default_temp if schema.temperature is None else schema.temperature,
            "top_p": default_top_p if schema.top_p is None else schema.top_p,
            "reserved_output_tokens": schema.reserved_output_tokens,
            "max_convo_tokens": schema.max_convo_tokens,
        }
        for slot, child in schema.children():
            res = self.resolve_role_config(child, role)
            if not res.ok:
                return res
            kwargs[FALLBACK_ATTRS[slot]] = res.value
        return Result(ok=True, value=ModelRoleConfig(**kwargs))

    def resolve_pack(self, schema: ModelPackSchema, local_provider: Optional[str] = None) -> Result[ModelPack]:
        kwargs = {"name": schema.name, "description": schema.description, "local_provider": local_provider}
        for role, role_schema in schema.role_schemas():
            if role_schema is None:
                continue
            res = self.resolve_role_config(role_schema, role)
            if not res.ok:
                return Result(ok=False, error=res.error)
            kwargs[role_attr(role)] = res.value
        return Result(ok=True, value=ModelPack(**kwargs))


def check_model_refs(schemas: List[ModelPackSchema], catalog: ModelCatalog) -> Result[None]:
    """Every model id used by a pack must exist and suit its role."""
    problems = []
    for schema in schemas:
        for role, role_schema in schema.role_schemas():
            stack = [role_schema] if role_schema is not None else []
            while stack:
                node = stack.pop()
                stack.extend(child for _, child in node.children())
                model = catalog.get_model(node.model_id)
                if model is None:
                    problems.append(f"• model pack {schema.name}: {role.value} uses unknown model {node.model_id}")
                elif not model.supports_role(role):
                    problems.append(f"• model pack {schema.name}: {node.model_id} is not compatible with {role.value}")
    if problems:
        return Result.fail("models.invalid", "\n".join(problems))
    return Result(ok=True)
