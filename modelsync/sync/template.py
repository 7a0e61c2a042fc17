from ..config.schema_models import (
    BaseModelUsesProvider, CustomModel, CustomProvider, ModelCompatibility, ModelOutputFormat,
    ModelPackSchema, ModelProvider, ModelRoleConfigSchema, ModelsInput,
)
from ..util.const import DEFAULTS

EXAMPLE_PROVIDER = "togetherai"
EXAMPLE_MODEL = "meta-llama/llama-4-maverick"


def example_document(is_cloud: bool) -> ModelsInput:
    """Starter models file written when neither side has anything yet.

    Custom providers aren't available on cloud, so the example model is
    served through OpenRouter only in that case.
    """
    providers = []
    uses = []
    if not is_cloud:
        providers.append(CustomProvider(
            name=EXAMPLE_PROVIDER,
            base_url="https://api.together.xyz/v1",
            api_key_env_var="TOGETHER_API_KEY",
        ))
        uses.append(BaseModelUsesProvider(
            provider=ModelProvider.CUSTOM,
            custom_provider=EXAMPLE_PROVIDER,
            model_name="meta-llama/Llama-4-Maverick-17B-128E-Instruct-FP8",
        ))
    uses.append(BaseModelUsesProvider(provider=ModelProvider.OPENROUTER, model_name=EXAMPLE_MODEL))

    return ModelsInput(
        schema_url=DEFAULTS["SCHEMA_URL"],
        custom_providers=providers,
        custom_models=[
            CustomModel(
                model_id=EXAMPLE_MODEL,
                publisher="meta-llama",
                description="Meta Llama 4 Maverick",
                default_max_convo_tokens=75000,
                max_tokens=1048576,
                max_output_tokens=16000,
                reserved_output_tokens=16000,
                model_compatibility=ModelCompatibility.FULL,
                preferred_output_format=ModelOutputFormat.XML,
                providers=uses,
            ),
        ],
        custom_model_packs=[
            ModelPackSchema(
                name="example-model-pack",
                description="Example model pack",
                planner=ModelRoleConfigSchema(model_id="deepseek/r1"),
                architect=ModelRoleConfigSchema(model_id="deepseek/r1"),
                coder=ModelRoleConfigSchema(model_id="deepseek/v3-0324"),
                plan_summary=ModelRoleConfigSchema(model_id=EXAMPLE_MODEL),
                builder=ModelRoleConfigSchema(model_id="deepseek/r1-hidden"),
                whole_file_builder=ModelRoleConfigSchema(model_id="deepseek/r1-hidden"),
                exec_status=ModelRoleConfigSchema(model_id="deepseek/r1-hidden"),
                namer=ModelRoleConfigSchema(model_id=EXAMPLE_MODEL),
                commit_message=ModelRoleConfigSchema(model_id=EXAMPLE_MODEL),
            ),
        ],
    )
