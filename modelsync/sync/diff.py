"""Per-kind added / updated / deleted sets between two models documents."""

from dataclasses import dataclass, field
from typing import Iterator, List, Sequence, Tuple

from ..config.schema_models import ModelsInput, entity_content
from ..util.codec import canonical_json_bytes

# Display order of entity kinds
KINDS = [
    ("provider", "custom_providers"),
    ("model", "custom_models"),
    ("model pack", "custom_model_packs"),
]

ADDED = "added"
UPDATED = "updated"
DELETED = "deleted"


@dataclass
class KindDiff:
    kind: str
    added: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.added or self.updated or self.deleted)


@dataclass
class ModelsDiff:
    providers: KindDiff
    models: KindDiff
    model_packs: KindDiff

    def kinds(self) -> List[KindDiff]:
        return [self.providers, self.models, self.model_packs]

    def is_empty(self) -> bool:
        return all(k.is_empty() for k in self.kinds())

    def lines(self) -> Iterator[Tuple[str, str, str]]:
        """(action, kind, key): every addition, then updates, then deletions."""
        for action in (ADDED, UPDATED, DELETED):
            for kind_diff in self.kinds():
                for key in getattr(kind_diff, action):
                    yield action, kind_diff.kind, key


def _same(a, b) -> bool:
    return canonical_json_bytes(entity_content(a)) == canonical_json_bytes(entity_content(b))


def _filter_entities(new: Sequence, previous: Sequence) -> list:
    previous_by_key = {e.key: e for e in previous}
    return [e for e in new if e.key not in previous_by_key or not _same(e, previous_by_key[e.key])]


def filter_unchanged(new: ModelsInput, previous: ModelsInput) -> ModelsInput:
    """Entities of ``new`` that are absent from or differ from ``previous``."""
    return ModelsInput(
        schema_url=new.schema_url,
        custom_models=_filter_entities(new.custom_models, previous.custom_models),
        custom_providers=_filter_entities(new.custom_providers, previous.custom_providers),
        custom_model_packs=_filter_entities(new.custom_model_packs, previous.custom_model_packs),
    )


def compute_diff(previous: ModelsInput, new: ModelsInput) -> ModelsDiff:
    changed = filter_unchanged(new, previous)
    result = []
    for kind, attr in KINDS:
        previous_keys = {e.key for e in getattr(previous, attr)}
        new_keys = {e.key for e in getattr(new, attr)}
        kind_diff = KindDiff(kind=kind)
        for entity in getattr(changed, attr):
            if entity.key in previous_keys:
                kind_diff.updated.append(entity.key)
            else:
                kind_diff.added.append(entity.key)
        kind_diff.deleted = [e.key for e in getattr(previous, attr) if e.key not in new_keys]
        result.append(kind_diff)
    return ModelsDiff(*result)
