"""Local models file and its ``.hash`` sidecar."""

import json
import os
from pathlib import Path
from typing import Optional

from ..config.schema_models import ModelsInput
from ..util.logging import log
from ..util.paths import sidecar_path


class LocalStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.hash_path = sidecar_path(self.path)

    def exists(self) -> bool:
        return self.path.exists()

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def write_bytes(self, data: bytes) -> None:
        dir_path = self.path.parent
        os.makedirs(dir_path, exist_ok=True)
        self.path.write_bytes(data)
        log("DEBUG", "store", "models_file_written", path=str(self.path), size=len(data))

    def write_document(self, doc: ModelsInput) -> bytes:
        data = serialize_document(doc)
        self.write_bytes(data)
        return data

    def read_sidecar_hash(self) -> Optional[str]:
        if not self.hash_path.exists():
            return None
        return self.hash_path.read_text(encoding="utf-8").strip()

    def write_sidecar_hash(self, digest: str) -> None:
        os.makedirs(self.hash_path.parent, exist_ok=True)
        self.hash_path.write_text(digest, encoding="utf-8")
        log("DEBUG", "store", "sidecar_written", path=str(self.hash_path))


def serialize_document(doc: ModelsInput) -> bytes:
    return (json.dumps(doc.dump(), indent=2, ensure_ascii=False) + "\n").encode("utf-8")
