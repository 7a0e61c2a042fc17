"""Tests for the open/save flows against an in-memory server."""

import json

import pytest

from modelsync.config.loader import parse_models_json
from modelsync.config.schema_models import BaseModelUsesProvider, ModelProvider, ModelsInput
from modelsync.sync.hashing import hash_models_input
from modelsync.sync.manager import ModelsSync, fetch_remote
from modelsync.sync.reconcile import Decision
from modelsync.sync.store import LocalStore, serialize_document
from modelsync.util.paths import default_models_path
from modelsync.util.types import ErrorInfo
from conftest import FakeApi, make_model, make_pack_schema, make_provider


class Confirm:
    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.asked = []

    async def __call__(self, path) -> bool:
        self.asked.append(path)
        return self.answer


def read_doc(path):
    return parse_models_json(path.read_bytes()).value


async def seeded_api(sample_doc) -> FakeApi:
    api = FakeApi()
    await api.create_custom_models(sample_doc)
    api.pushed.clear()
    return api


class TestFetchRemote:
    @pytest.mark.asyncio
    async def test_gathers_all_kinds(self, sample_doc):
        api = await seeded_api(sample_doc)
        res = await fetch_remote(api, is_cloud=False)
        assert res.ok
        assert [m.model_id for m in res.value.custom_models] == ["acme/m1", "acme/m2"]
        assert [p.name for p in res.value.custom_providers] == ["acme-cloud"]
        assert res.value.custom_model_packs == sample_doc.custom_model_packs

    @pytest.mark.asyncio
    async def test_cloud_skips_providers(self, sample_doc):
        api = await seeded_api(sample_doc)
        res = await fetch_remote(api, is_cloud=True)
        assert res.ok
        assert res.value.custom_providers == []
        assert api.provider_calls == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["list_custom_models", "list_custom_providers", "list_model_packs"])
    async def test_any_failure_is_fatal(self, sample_doc, method):
        api = await seeded_api(sample_doc)
        api.fail_on[method] = ErrorInfo("api.http_error", "boom", {"status": 500})
        res = await fetch_remote(api, is_cloud=False)
        assert not res.ok
        assert res.error.code == "api.http_error"
        assert res.error.detail == {"status": 500}

    @pytest.mark.asyncio
    async def test_provider_failure_ignored_on_cloud(self, sample_doc):
        api = await seeded_api(sample_doc)
        api.fail_on["list_custom_providers"] = ErrorInfo("api.http_error", "boom", {"status": 500})
        res = await fetch_remote(api, is_cloud=True)
        assert res.ok


class TestOpen:
    @pytest.mark.asyncio
    async def test_writes_example_when_both_sides_empty(self, models_home):
        sync = ModelsSync(FakeApi(), False, Confirm(True))
        res = await sync.open()
        assert res.ok
        assert res.value.wrote_example
        assert res.value.decision == Decision.USE_LOCAL_AS_IS

        doc = read_doc(default_models_path())
        assert [p.name for p in doc.custom_providers] == ["togetherai"]
        assert [mp.name for mp in doc.custom_model_packs] == ["example-model-pack"]

    @pytest.mark.asyncio
    async def test_cloud_example_has_no_custom_provider(self, models_home):
        res = await ModelsSync(FakeApi(), True, Confirm(True)).open()
        assert res.ok
        assert read_doc(default_models_path()).custom_providers == []

    @pytest.mark.asyncio
    async def test_empty_server_keeps_local_file(self, models_home, sample_doc):
        store = LocalStore(default_models_path())
        data = store.write_document(sample_doc)

        res = await ModelsSync(FakeApi(), False, Confirm(True)).open()
        assert res.ok
        assert not res.value.wrote_example
        assert store.read_bytes() == data

    @pytest.mark.asyncio
    async def test_first_open_writes_server_state_and_sidecar(self, models_home, sample_doc):
        api = await seeded_api(sample_doc)
        res = await ModelsSync(api, False, Confirm(True)).open()
        assert res.ok
        assert res.value.overwritten
        assert res.value.dropped is None

        store = LocalStore(default_models_path())
        on_disk = read_doc(store.path)
        assert on_disk.equals(sample_doc)
        assert store.read_sidecar_hash() == hash_models_input(on_disk).value

    @pytest.mark.asyncio
    async def test_reopen_after_sync_is_equivalent(self, models_home, sample_doc):
        api = await seeded_api(sample_doc)
        confirm = Confirm(False)
        sync = ModelsSync(api, False, confirm)
        await sync.open()
        before = default_models_path().read_bytes()

        res = await sync.open()
        assert res.value.decision == Decision.EQUIVALENT
        assert confirm.asked == []
        assert default_models_path().read_bytes() == before

    @pytest.mark.asyncio
    async def test_declined_conflict_changes_nothing(self, models_home, sample_doc):
        api = await seeded_api(sample_doc)
        store = LocalStore(default_models_path())
        local = sample_doc.model_copy(deep=True)
        local.custom_models.append(make_model("acme/local-only"))
        data = store.write_document(local)
        store.write_sidecar_hash(hash_models_input(sample_doc).value)

        confirm = Confirm(False)
        res = await ModelsSync(api, False, confirm).open()
        assert res.ok
        assert res.value.cancelled
        assert confirm.asked == [store.path]
        assert store.read_bytes() == data
        assert store.read_sidecar_hash() == hash_models_input(sample_doc).value

    @pytest.mark.asyncio
    async def test_confirmed_conflict_drops_local_changes(self, models_home, sample_doc):
        api = await seeded_api(sample_doc)
        store = LocalStore(default_models_path())
        local = sample_doc.model_copy(deep=True)
        local.custom_models.append(make_model("acme/local-only"))
        store.write_document(local)

        res = await ModelsSync(api, False, Confirm(True)).open()
        assert res.ok
        assert res.value.overwritten
        assert res.value.dropped.models.added == ["acme/local-only"]
        on_disk = read_doc(store.path)
        assert on_disk.equals(sample_doc)
        assert store.read_sidecar_hash() == hash_models_input(on_disk).value

    @pytest.mark.asyncio
    async def test_explicit_path_never_asks_or_writes_sidecar(self, tmp_path, sample_doc):
        api = await seeded_api(sample_doc)
        path = tmp_path / "mine.json"
        local = sample_doc.model_copy(deep=True)
        local.custom_models = local.custom_models[:1]
        path.write_bytes(serialize_document(local))

        confirm = Confirm(False)
        res = await ModelsSync(api, False, confirm).open(path)
        assert res.ok
        assert confirm.asked == []
        assert read_doc(path).equals(sample_doc)
        assert not LocalStore(path).hash_path.exists()

    @pytest.mark.asyncio
    async def test_malformed_local_file(self, models_home, sample_doc):
        api = await seeded_api(sample_doc)
        path = default_models_path()
        path.parent.mkdir(parents=True)
        path.write_text("{not json")
        res = await ModelsSync(api, False, Confirm(True)).open()
        assert not res.ok
        assert res.error.code == "models.invalid"


class TestSave:
    @pytest.mark.asyncio
    async def test_missing_file(self, models_home):
        res = await ModelsSync(FakeApi(), False, Confirm(True)).save()
        assert not res.ok
        assert res.error.code == "models.file_missing"

    @pytest.mark.asyncio
    async def test_pushes_changes_and_reports_diff(self, models_home, sample_doc):
        api = FakeApi()
        LocalStore(default_models_path()).write_document(sample_doc)

        res = await ModelsSync(api, False, Confirm(True)).save()
        assert res.ok
        assert res.value.pushed
        assert res.value.diff.models.added == ["acme/m1", "acme/m2"]
        assert res.value.diff.providers.added == ["acme-cloud"]
        assert len(api.pushed) == 1
        assert LocalStore(default_models_path()).read_sidecar_hash() == hash_models_input(sample_doc).value

    @pytest.mark.asyncio
    async def test_no_changes_skips_push(self, models_home, sample_doc):
        api = await seeded_api(sample_doc)
        LocalStore(default_models_path()).write_document(sample_doc)

        res = await ModelsSync(api, False, Confirm(True)).save()
        assert res.ok
        assert not res.value.pushed
        assert res.value.no_changes
        assert api.pushed == []

    @pytest.mark.asyncio
    async def test_empty_document_is_no_changes(self, models_home, sample_doc):
        api = await seeded_api(sample_doc)
        path = default_models_path()
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"customModels": None}))

        res = await ModelsSync(api, False, Confirm(True)).save()
        assert res.ok
        assert res.value.no_changes
        assert api.pushed == []

    @pytest.mark.asyncio
    async def test_duplicates_rejected(self, tmp_path, sample_doc):
        doc = sample_doc.model_copy(deep=True)
        doc.custom_models.append(make_model("acme/m1"))
        path = tmp_path / "dups.json"
        path.write_bytes(serialize_document(doc))

        res = await ModelsSync(FakeApi(), False, Confirm(True)).save(path)
        assert not res.ok
        assert res.error.code == "models.duplicates"
        assert res.error.detail["duplicates"] == {"model": ["acme/m1"]}

    @pytest.mark.asyncio
    async def test_cloud_rejects_custom_providers(self, tmp_path, sample_doc):
        path = tmp_path / "models.json"
        path.write_bytes(serialize_document(sample_doc))
        res = await ModelsSync(FakeApi(), True, Confirm(True)).save(path)
        assert not res.ok
        assert res.error.code == "models.invalid"
        assert "not supported on cloud" in res.error.message

    @pytest.mark.asyncio
    async def test_unknown_model_in_pack_rejected(self, tmp_path, sample_doc):
        doc = sample_doc.model_copy(deep=True)
        doc.custom_model_packs.append(make_pack_schema("broken", model_id="acme/nope"))
        path = tmp_path / "models.json"
        path.write_bytes(serialize_document(doc))

        api = FakeApi()
        res = await ModelsSync(api, False, Confirm(True)).save(path)
        assert not res.ok
        assert res.error.code == "models.invalid"
        assert "acme/nope" in res.error.message
        assert api.pushed == []

    @pytest.mark.asyncio
    async def test_undefined_custom_provider_rejected(self, tmp_path):
        model = make_model("acme/m1", providers=[
            BaseModelUsesProvider(provider=ModelProvider.CUSTOM, custom_provider="ghost", model_name="m1"),
        ])
        path = tmp_path / "models.json"
        path.write_bytes(serialize_document(ModelsInput(custom_models=[model])))

        res = await ModelsSync(FakeApi(), False, Confirm(True)).save(path)
        assert not res.ok
        assert "ghost" in res.error.message

    @pytest.mark.asyncio
    async def test_save_then_open_is_equivalent(self, models_home, sample_doc):
        api = FakeApi()
        confirm = Confirm(False)
        sync = ModelsSync(api, False, confirm)
        LocalStore(default_models_path()).write_document(sample_doc)

        assert (await sync.save()).value.pushed
        res = await sync.open()
        assert res.ok
        assert res.value.decision == Decision.EQUIVALENT
        assert confirm.asked == []

    @pytest.mark.asyncio
    async def test_explicit_path_does_not_touch_sidecar(self, tmp_path, sample_doc):
        path = tmp_path / "models.json"
        path.write_bytes(serialize_document(sample_doc))
        res = await ModelsSync(FakeApi(), False, Confirm(True)).save(path)
        assert res.ok
        assert not LocalStore(path).hash_path.exists()


def test_provider_only_document_is_not_empty():
    assert not ModelsInput(custom_providers=[make_provider()]).is_empty()
