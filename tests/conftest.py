"""Pytest configuration for modelsync tests."""

from typing import Dict, List, Optional

import pytest

from modelsync.config.schema_models import (
    BaseModelUsesProvider, CustomModel, CustomProvider, ModelPack, ModelPackSchema, ModelProvider,
    ModelRoleConfigSchema, ModelsInput, PlanSettings,
)
from modelsync.api.client import ModelsApi
from modelsync.models.catalog import ModelCatalog
from modelsync.util.types import Result, ErrorInfo


def make_model(model_id: str = "acme/m1", **kw) -> CustomModel:
    fields = dict(
        model_id=model_id,
        publisher="acme",
        max_tokens=100000,
        max_output_tokens=8000,
        reserved_output_tokens=4000,
        providers=[BaseModelUsesProvider(provider=ModelProvider.OPENROUTER, model_name=model_id)],
    )
    fields.update(kw)
    return CustomModel(**fields)


def make_provider(name: str = "acme-cloud", **kw) -> CustomProvider:
    fields = dict(name=name, base_url="https://api.acme.test/v1", api_key_env_var="ACME_API_KEY")
    fields.update(kw)
    return CustomProvider(**fields)


def make_pack_schema(name: str = "acme-pack", model_id: str = "acme/m1") -> ModelPackSchema:
    cfg = lambda: ModelRoleConfigSchema(model_id=model_id)  # noqa: E731
    return ModelPackSchema(
        name=name,
        description="Acme pack",
        planner=cfg(),
        plan_summary=cfg(),
        builder=cfg(),
        namer=cfg(),
        commit_message=cfg(),
        exec_status=cfg(),
    )


@pytest.fixture
def sample_doc() -> ModelsInput:
    return ModelsInput(
        custom_models=[make_model("acme/m1"), make_model("acme/m2")],
        custom_providers=[make_provider()],
        custom_model_packs=[make_pack_schema()],
    )


@pytest.fixture
def catalog() -> ModelCatalog:
    return ModelCatalog([make_model("acme/m1"), make_model("acme/m2")])


class FakeApi(ModelsApi):
    """In-memory server state; records every push."""

    def __init__(self, models: Optional[List[CustomModel]] = None,
                 providers: Optional[List[CustomProvider]] = None,
                 packs: Optional[List[ModelPack]] = None) -> None:
        self.models = list(models or [])
        self.providers = list(providers or [])
        self.packs = list(packs or [])
        self.settings = PlanSettings()
        self.default_settings = PlanSettings()
        self.pushed: List[ModelsInput] = []
        self.provider_calls = 0
        # method name -> error that call returns instead of its data
        self.fail_on: Dict[str, ErrorInfo] = {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return None

    def _result(self, method: str, value) -> Result:
        if method in self.fail_on:
            return Result(ok=False, error=self.fail_on[method])
        return Result(ok=True, value=value)

    async def list_custom_models(self):
        return self._result("list_custom_models", list(self.models))

    async def list_custom_providers(self):
        self.provider_calls += 1
        return self._result("list_custom_providers", list(self.providers))

    async def list_model_packs(self):
        return self._result("list_model_packs", list(self.packs))

    async def create_custom_models(self, doc):
        self.pushed.append(doc)
        self.models = list(doc.custom_models)
        self.providers = list(doc.custom_providers)
        catalog = ModelCatalog(self.models)
        self.packs = [catalog.resolve_pack(schema).value for schema in doc.custom_model_packs]
        return Result(ok=True)

    async def get_settings(self, plan_id, branch):
        return Result(ok=True, value=self.settings)

    async def update_settings(self, plan_id, branch, settings):
        self.settings = settings
        return Result(ok=True, value="✅ Model settings updated")

    async def get_org_default_settings(self):
        return Result(ok=True, value=self.default_settings)

    async def update_org_default_settings(self, settings):
        self.default_settings = settings
        return Result(ok=True, value="✅ Org default settings updated")


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def models_home(tmp_path, monkeypatch):
    """Point the default models file at a temp config dir."""
    home = tmp_path / "home" / ".modelsync"
    monkeypatch.setenv("MODELSYNC_HOME", str(home))
    return home
