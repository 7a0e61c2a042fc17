"""Tests for the HTTP models API client using a mock transport."""

import json

import httpx
import pytest

from modelsync.api.client import HttpModelsApi
from modelsync.config.schema_client import ClientCfg
from modelsync.config.schema_models import ModelsInput, PlanSettings
from conftest import make_model


def make_api(handler, **cfg):
    cfg.setdefault("api_url", "https://models.test/api")
    return HttpModelsApi(ClientCfg(**cfg), transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_list_models_sends_auth_headers():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("authorization")
        seen["org"] = request.headers.get("x-org-id")
        return httpx.Response(200, json=[make_model().dump()])

    async with make_api(handler, token="tok-123", org_id="org-1") as api:
        res = await api.list_custom_models()

    assert res.ok
    assert [m.model_id for m in res.value] == ["acme/m1"]
    assert seen == {"path": "/api/custom_models", "auth": "Bearer tok-123", "org": "org-1"}


@pytest.mark.asyncio
async def test_null_list_is_empty():
    async with make_api(lambda request: httpx.Response(200, json=None)) as api:
        res = await api.list_custom_providers()
    assert res.ok
    assert res.value == []


@pytest.mark.asyncio
async def test_http_error_carries_status_and_message():
    async with make_api(lambda request: httpx.Response(403, json={"msg": "forbidden"})) as api:
        res = await api.list_model_packs()
    assert not res.ok
    assert res.error.code == "api.http_error"
    assert res.error.message == "forbidden"
    assert res.error.detail == {"status": 403}


@pytest.mark.asyncio
async def test_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with make_api(handler) as api:
        res = await api.get_org_default_settings()
    assert res.error.code == "api.transport_error"


@pytest.mark.asyncio
async def test_bad_payloads():
    async with make_api(lambda request: httpx.Response(200, content=b"<html>")) as api:
        assert (await api.list_custom_models()).error.code == "api.bad_response"
    async with make_api(lambda request: httpx.Response(200, json=[{"modelId": 3}])) as api:
        assert (await api.list_custom_models()).error.code == "api.bad_response"


@pytest.mark.asyncio
async def test_create_posts_document(sample_doc):
    captured = {}

    def handler(request):
        captured["method"] = request.method
        captured["body"] = json.loads(request.content)
        return httpx.Response(200)

    async with make_api(handler) as api:
        res = await api.create_custom_models(sample_doc.prepare_update())
    assert res.ok
    assert captured["method"] == "POST"
    assert ModelsInput.model_validate(captured["body"]).equals(sample_doc)


@pytest.mark.asyncio
async def test_settings_round_trip():
    captured = {}

    def handler(request):
        if request.method == "GET":
            return httpx.Response(200, json={"modelOverrides": {"maxTokens": 500}})
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={})

    async with make_api(handler, plan_id="p1") as api:
        got = await api.get_settings("p1", "main")
        assert got.value == PlanSettings.model_validate({"modelOverrides": {"maxTokens": 500}})
        msg = await api.update_settings("p1", "main", got.value)

    assert msg.ok
    assert msg.value == "✅ Model settings updated"
    assert captured["path"] == "/api/plans/p1/main/settings"
    assert captured["body"] == {"settings": {"modelOverrides": {"maxTokens": 500}}}
