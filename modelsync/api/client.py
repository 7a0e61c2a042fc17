"""Server API used by the sync and settings commands."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from ..config.schema_client import ClientCfg
from ..config.schema_models import CustomModel, CustomProvider, ModelPack, ModelsInput, PlanSettings
from ..util.logging import log
from ..util.types import Result, ErrorInfo


class ModelsApi(ABC):
    """Remote collaborator. Every call returns a Result; nothing is retried."""

    @abstractmethod
    async def list_custom_models(self) -> Result[List[CustomModel]]: ...

    @abstractmethod
    async def list_custom_providers(self) -> Result[List[CustomProvider]]: ...

    @abstractmethod
    async def list_model_packs(self) -> Result[List[ModelPack]]: ...

    @abstractmethod
    async def create_custom_models(self, doc: ModelsInput) -> Result[None]:
        """Replace the server's custom models, providers and packs with ``doc``."""

    @abstractmethod
    async def get_settings(self, plan_id: str, branch: str) -> Result[PlanSettings]: ...

    @abstractmethod
    async def update_settings(self, plan_id: str, branch: str, settings: PlanSettings) -> Result[str]: ...

    @abstractmethod
    async def get_org_default_settings(self) -> Result[PlanSettings]: ...

    @abstractmethod
    async def update_org_default_settings(self, settings: PlanSettings) -> Result[str]: ...


_models_adapter = TypeAdapter(List[CustomModel])
_providers_adapter = TypeAdapter(List[CustomProvider])
_packs_adapter = TypeAdapter(List[ModelPack])


class HttpModelsApi(ModelsApi):
    def __init__(self, cfg: ClientCfg, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        headers = {"Accept": "application/json"}
        if cfg.token:
            headers["Authorization"] = f"Bearer {cfg.token}"
        if cfg.org_id:
            headers["X-Org-Id"] = cfg.org_id
        self._client = httpx.AsyncClient(
            base_url=str(cfg.api_url).rstrip("/"),
            headers=headers,
            timeout=cfg.request_timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpModelsApi":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Result[Any]:
        try:
            resp = await self._client.request(method, path, json=body)
        except httpx.HTTPError as e:
            log("ERROR", "api", "transport_failed", method=method, path=path, error=str(e))
            return Result(ok=False, error=ErrorInfo("api.transport_error", str(e)))

        if resp.status_code >= 400:
            msg = resp.text
            try:
                payload = resp.json()
                if isinstance(payload, dict):
                    msg = payload.get("msg") or payload.get("message") or msg
            except ValueError:
                pass
            log("WARN", "api", "http_error", method=method, path=path, status=resp.status_code)
            return Result(ok=False, error=ErrorInfo("api.http_error", msg, {"status": resp.status_code}))

        if not resp.content:
            return Result(ok=True, value=None)
        try:
            return Result(ok=True, value=resp.json())
        except ValueError as e:
            return Result(ok=False, error=ErrorInfo("api.bad_response", f"Invalid JSON from server: {e}"))

    async def _get_parsed(self, path: str, parse) -> Result[Any]:
        res = await self._request("GET", path)
        if not res.ok:
            return res
        try:
            return Result(ok=True, value=parse(res.value))
        except ValidationError as e:
            return Result(ok=False, error=ErrorInfo("api.bad_response", str(e)))

    async def list_custom_models(self) -> Result[List[CustomModel]]:
        return await self._get_parsed("/custom_models", lambda v: _models_adapter.validate_python(v or []))

    async def list_custom_providers(self) -> Result[List[CustomProvider]]:
        return await self._get_parsed("/custom_providers", lambda v: _providers_adapter.validate_python(v or []))

    async def list_model_packs(self) -> Result[List[ModelPack]]:
        return await self._get_parsed("/model_packs", lambda v: _packs_adapter.validate_python(v or []))

    async def create_custom_models(self, doc: ModelsInput) -> Result[None]:
        res = await self._request("POST", "/custom_models", doc.dump())
        return Result(ok=True) if res.ok else res

    async def get_settings(self, plan_id: str, branch: str) -> Result[PlanSettings]:
        return await self._get_parsed(f"/plans/{plan_id}/{branch}/settings", PlanSettings.model_validate)

    async def update_settings(self, plan_id: str, branch: str, settings: PlanSettings) -> Result[str]:
        res = await self._request("PUT", f"/plans/{plan_id}/{branch}/settings", {"settings": settings.dump()})
        return _update_message(res)

    async def get_org_default_settings(self) -> Result[PlanSettings]:
        return await self._get_parsed("/default_settings", PlanSettings.model_validate)

    async def update_org_default_settings(self, settings: PlanSettings) -> Result[str]:
        res = await self._request("PUT", "/default_settings", {"settings": settings.dump()})
        return _update_message(res)


def _update_message(res: Result[Any]) -> Result[str]:
    if not res.ok:
        return res
    msg = res.value.get("msg") if isinstance(res.value, dict) else None
    return Result(ok=True, value=msg or "✅ Model settings updated")
