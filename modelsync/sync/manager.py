"""Open and save flows for the local models file."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional

from ..api.client import ModelsApi
from ..config.loader import parse_models_json
from ..config.schema_models import ModelProvider, ModelsInput
from ..models.catalog import ModelCatalog, check_model_refs
from ..util.logging import log
from ..util.paths import default_models_path
from ..util.types import Result, ErrorInfo
from .diff import ModelsDiff, compute_diff
from .hashing import hash_models_input
from .reconcile import Decision, reconcile
from .store import LocalStore
from .template import example_document

ConfirmFn = Callable[[Path], Awaitable[bool]]


async def fetch_remote(api: ModelsApi, is_cloud: bool) -> Result[ModelsInput]:
    """Fetch models, providers and packs concurrently; any failure is fatal."""
    async def providers():
        # Custom providers are not supported on cloud
        if is_cloud:
            return Result(ok=True, value=[])
        return await api.list_custom_providers()

    models_res, providers_res, packs_res = await asyncio.gather(
        api.list_custom_models(), providers(), api.list_model_packs())

    for what, res in (("models", models_res), ("providers", providers_res), ("model packs", packs_res)):
        if not res.ok:
            log("ERROR", "sync", "fetch_failed", what=what, code=res.error.code)
            return Result(ok=False, error=res.error)

    return Result(ok=True, value=ModelsInput(
        custom_models=models_res.value,
        custom_providers=providers_res.value,
        custom_model_packs=[pack.to_schema() for pack in packs_res.value],
    ))


@dataclass
class OpenOutcome:
    path: Path
    decision: Decision
    cancelled: bool = False
    wrote_example: bool = False
    # True when the file was replaced with the server's state
    overwritten: bool = False
    # Local content that differed from the server before overwriting
    dropped: Optional[ModelsDiff] = None


@dataclass
class SaveOutcome:
    path: Path
    pushed: bool
    diff: Optional[ModelsDiff] = None

    @property
    def no_changes(self) -> bool:
        return self.diff is None or self.diff.is_empty()


class ModelsSync:
    def __init__(self, api: ModelsApi, is_cloud: bool, confirm: ConfirmFn) -> None:
        self.api = api
        self.is_cloud = is_cloud
        self.confirm = confirm

    def _store(self, path: Optional[Path]) -> LocalStore:
        return LocalStore(Path(path) if path is not None else default_models_path())

    async def open(self, path: Optional[Path] = None) -> Result[OpenOutcome]:
        """Bring the local file up to date with the server before editing."""
        using_default_path = path is None
        store = self._store(path)

        remote_res = await fetch_remote(self.api, self.is_cloud)
        if not remote_res.ok:
            return Result(ok=False, error=remote_res.error)
        remote = remote_res.value

        local = None
        last_hash = None
        try:
            if store.exists():
                parsed = parse_models_json(store.read_bytes())
                if not parsed.ok:
                    return Result(ok=False, error=parsed.error)
                local = parsed.value
            if using_default_path:
                last_hash = store.read_sidecar_hash()
        except OSError as e:
            return Result(ok=False, error=ErrorInfo("models.read_failed", str(e)))

        rec_res = reconcile(remote, local, last_hash, using_default_path)
        if not rec_res.ok:
            return Result(ok=False, error=rec_res.error)
        rec = rec_res.value

        if rec.decision == Decision.NEEDS_CONFLICT_CHECK:
            if not await self.confirm(store.path):
                log("INFO", "sync", "drop_local_declined", path=str(store.path))
                return Result(ok=True, value=OpenOutcome(store.path, rec.decision, cancelled=True))
            rec_res = reconcile(remote, local, last_hash, using_default_path, confirmed=True)
            if not rec_res.ok:
                return Result(ok=False, error=rec_res.error)
            rec = rec_res.value

        outcome = OpenOutcome(store.path, rec.decision)
        try:
            if rec.decision == Decision.USE_LOCAL_AS_IS:
                if local is None:
                    store.write_document(example_document(self.is_cloud))
                    outcome.wrote_example = True
                return Result(ok=True, value=outcome)

            on_disk = local
            if rec.decision == Decision.DIFF:
                store.write_document(rec.prepared_remote)
                on_disk = rec.prepared_remote
                outcome.overwritten = True
                outcome.dropped = rec.diff if local is not None else None

            if using_default_path:
                hash_res = hash_models_input(on_disk)
                if not hash_res.ok:
                    return Result(ok=False, error=hash_res.error)
                store.write_sidecar_hash(hash_res.value)
        except OSError as e:
            return Result(ok=False, error=ErrorInfo("models.write_failed", str(e)))

        log("INFO", "sync", "models_file_opened", path=str(store.path), decision=rec.decision.value)
        return Result(ok=True, value=outcome)

    def _validate(self, doc: ModelsInput) -> Result[None]:
        dup = doc.check_no_duplicates()
        if not dup.ok:
            return dup

        problems = []
        if self.is_cloud and doc.custom_providers:
            problems.append("• custom providers are not supported on cloud")
        provider_names = {p.name for p in doc.custom_providers}
        for model in doc.custom_models:
            for use in model.providers:
                if use.provider == ModelProvider.CUSTOM and use.custom_provider not in provider_names:
                    problems.append(f"• model {model.model_id} uses undefined custom provider {use.custom_provider}")
        if problems:
            return Result.fail("models.invalid", "\n".join(problems))

        return check_model_refs(doc.custom_model_packs, ModelCatalog(doc.custom_models, is_cloud=self.is_cloud))

    async def save(self, path: Optional[Path] = None) -> Result[SaveOutcome]:
        """Validate the local file and push it to the server."""
        using_default_path = path is None
        store = self._store(path)

        if not store.exists():
            return Result(ok=False, error=ErrorInfo("models.file_missing", f"File not found: {store.path}"))
        try:
            data = store.read_bytes()
        except OSError as e:
            return Result(ok=False, error=ErrorInfo("models.read_failed", str(e)))

        parsed = parse_models_json(data)
        if not parsed.ok:
            return Result(ok=False, error=parsed.error)
        doc = parsed.value

        valid = self._validate(doc)
        if not valid.ok:
            return Result(ok=False, error=valid.error)

        if doc.is_empty():
            return Result(ok=True, value=SaveOutcome(store.path, pushed=False))

        remote_res = await fetch_remote(self.api, self.is_cloud)
        if not remote_res.ok:
            return Result(ok=False, error=remote_res.error)

        diff = compute_diff(remote_res.value.prepare_update(), doc)
        pushed = False
        if not diff.is_empty():
            push_res = await self.api.create_custom_models(doc)
            if not push_res.ok:
                return Result(ok=False, error=push_res.error)
            pushed = True

        if using_default_path:
            hash_res = hash_models_input(doc)
            if not hash_res.ok:
                return Result(ok=False, error=hash_res.error)
            try:
                store.write_sidecar_hash(hash_res.value)
            except OSError as e:
                return Result(ok=False, error=ErrorInfo("models.write_failed", str(e)))

        log("INFO", "sync", "models_saved", path=str(store.path), pushed=pushed)
        return Result(ok=True, value=SaveOutcome(store.path, pushed=pushed, diff=diff))
