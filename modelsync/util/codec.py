"""Canonical JSON encoding shared by hashing and equality checks."""

import json
from typing import Any

from pydantic import BaseModel

def canonicalize(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return canonicalize(obj.model_dump(mode="json", by_alias=True, exclude_none=True))
    if isinstance(obj, dict):
        return {str(k): canonicalize(obj[k]) for k in sorted(obj.keys(), key=str)}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(x) for x in obj]
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    raise TypeError(f"cannot canonicalize value of type {type(obj).__name__}")

def canonical_json_bytes(obj: Any) -> bytes:
    canon = canonicalize(obj)
    s = json.dumps(canon, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return s.encode("utf-8")
