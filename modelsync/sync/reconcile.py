"""Decide how a local models file relates to the server's state."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config.schema_models import ModelsInput
from ..util.logging import log
from ..util.types import Result
from .diff import ModelsDiff, compute_diff
from .hashing import hash_models_input


class Decision(str, Enum):
    USE_LOCAL_AS_IS = "use-local-as-is"
    NEEDS_CONFLICT_CHECK = "needs-conflict-check"
    EQUIVALENT = "equivalent"
    DIFF = "diff"


@dataclass
class Reconciliation:
    decision: Decision
    # Set whenever the local file was hashed for a conflict check
    current_hash: Optional[str] = None
    prepared_remote: Optional[ModelsInput] = None
    # Local changes relative to the server (what a save would push)
    diff: Optional[ModelsDiff] = None


def reconcile(remote: ModelsInput, local: Optional[ModelsInput], last_known_hash: Optional[str],
              using_default_path: bool = True, confirmed: bool = False) -> Result[Reconciliation]:
    """Compare the server's document with the local file.

    ``local`` is None when no local file exists. Files at an explicit path
    are trusted without hashing. On the default path a local file whose
    hash differs from the sidecar (or with no sidecar) needs confirmation
    before it may be replaced; pass ``confirmed=True`` once given.
    """
    if remote.is_empty():
        # Nothing on the server could overwrite the file; with no file the
        # caller writes the example document
        return Result(ok=True, value=Reconciliation(Decision.USE_LOCAL_AS_IS))

    current_hash = None
    if local is not None and using_default_path:
        hash_res = hash_models_input(local)
        if not hash_res.ok:
            return Result(ok=False, error=hash_res.error)
        current_hash = hash_res.value
        if current_hash != last_known_hash and not confirmed:
            log("INFO", "reconcile", "local_changes_detected",
                has_sidecar=last_known_hash is not None)
            return Result(ok=True, value=Reconciliation(Decision.NEEDS_CONFLICT_CHECK, current_hash=current_hash))

    prepared = remote.prepare_update()
    if local is not None and prepared.equals(local):
        return Result(ok=True, value=Reconciliation(Decision.EQUIVALENT, current_hash=current_hash,
                                                    prepared_remote=prepared))

    diff = compute_diff(prepared, local if local is not None else ModelsInput())
    log("DEBUG", "reconcile", "documents_differ", changed=not diff.is_empty())
    return Result(ok=True, value=Reconciliation(Decision.DIFF, current_hash=current_hash,
                                                prepared_remote=prepared, diff=diff))
