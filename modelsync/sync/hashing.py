"""Content hash of a models document, used to detect local edits."""

import hashlib

from pydantic_core import PydanticSerializationError

from ..config.schema_models import ModelsInput
from ..util.codec import canonical_json_bytes
from ..util.logging import log
from ..util.types import Result

def hash_models_input(doc: ModelsInput) -> Result[str]:
    """sha256 of the canonical entity content.

    Key order and the schema tag don't affect the hash; any change to an
    entity's content does. A failure is never reported as a hash.
    """
    try:
        digest = hashlib.sha256(canonical_json_bytes(doc.canonical_content())).hexdigest()
    except (TypeError, ValueError, PydanticSerializationError) as e:
        log("ERROR", "hashing", "canonicalize_failed", error=str(e))
        return Result.fail("hash.failed", f"Unable to hash models: {e}")
    return Result(ok=True, value=digest)
