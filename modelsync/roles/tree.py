"""Traversal and targeted mutation of role config trees."""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from ..config.schema_models import ModelPack, ModelRoleConfig, role_attr
from ..models.catalog import ModelCatalog
from ..util.const import ALL_ROLES, DEFAULTS, OPTIONAL_ROLE_FALLBACKS, ModelRole, RoleField
from ..util.types import Result


@dataclass
class FlatNode:
    label: str
    config: ModelRoleConfig
    depth: int


def flatten(root: ModelRoleConfig, label: Optional[str] = None, depth: int = 0) -> List[FlatNode]:
    """Pre-order walk: node, then large-context, large-output, strong, error."""
    nodes = [FlatNode(label or root.role.value, root, depth)]
    for slot, child in root.children():
        nodes.extend(flatten(child, slot.value, depth + 1))
    return nodes


def flatten_pack(pack: ModelPack) -> List[FlatNode]:
    nodes: List[FlatNode] = []
    for role in ALL_ROLES:
        nodes.extend(flatten(pack.get_role(role), role.value, 0))
    return nodes


def effective_params(node: ModelRoleConfig) -> Tuple[float, float, bool]:
    """(temperature, top_p, disabled); models that reject both get 1.0."""
    if node.base_model_config.role_params_disabled:
        return 1.0, 1.0, True
    return node.temperature, node.top_p, False


def effective_reserved_output_tokens(node: ModelRoleConfig) -> int:
    if node.reserved_output_tokens is not None:
        return node.reserved_output_tokens
    return node.base_model_config.reserved_output_tokens


def effective_max_tokens(node: ModelRoleConfig) -> int:
    return node.base_model_config.max_tokens


def max_input_tokens(node: ModelRoleConfig) -> int:
    return effective_max_tokens(node) - effective_reserved_output_tokens(node)


def final_large_context_fallback(node: ModelRoleConfig) -> ModelRoleConfig:
    while node.large_context_fallback is not None:
        node = node.large_context_fallback
    return node


def max_convo_tokens(node: ModelRoleConfig) -> int:
    if node.max_convo_tokens is not None:
        return node.max_convo_tokens
    return node.base_model_config.default_max_convo_tokens


def _check_range(name: str, value: float, bounds: Tuple[float, float]) -> Result[None]:
    lo, hi = bounds
    # NaN fails every comparison, so it lands here too
    if not (lo <= value <= hi):
        return Result.fail("settings.invalid_value", f"Invalid value for {name}: {value} ({lo} to {hi})",
                           field=name, value=value)
    return Result(ok=True)


def set_field(pack: ModelPack, role: ModelRole, field: RoleField,
              value: Union[str, float, int], catalog: ModelCatalog) -> Result[Tuple[ModelPack, bool]]:
    """Set one field on the root config of ``role``.

    Works on a deep copy; the given pack is never modified. Fallback
    children are not addressable here. A model id must already be checked
    for compatibility with the role by the caller.
    """
    if field != RoleField.MODEL:
        try:
            value = int(value) if field == RoleField.RESERVED_OUTPUT_TOKENS else float(value)
        except (TypeError, ValueError):
            return Result.fail("settings.invalid_value", f"Invalid value for {field.value}: {value}",
                               field=field.value, value=str(value))

    if field == RoleField.TEMPERATURE:
        check = _check_range("temperature", value, DEFAULTS["TEMPERATURE_RANGE"])
    elif field == RoleField.TOP_P:
        check = _check_range("top-p", value, DEFAULTS["TOP_P_RANGE"])
    elif field == RoleField.RESERVED_OUTPUT_TOKENS:
        check = Result(ok=True) if value >= 0 else Result.fail(
            "settings.invalid_value", f"Invalid value for reserved-output-tokens: {value}")
    else:
        model = catalog.get_model(str(value))
        check = Result(ok=True) if model is not None else Result.fail(
            "settings.unknown_model", f"Unknown model '{value}'", model_id=str(value))
    if not check.ok:
        return Result(ok=False, error=check.error)

    updated = pack.model_copy(deep=True)
    attr = role_attr(role)
    node = getattr(updated, attr)
    if node is None:
        # Optional role not set yet: start from what it currently falls back to
        source = getattr(updated, role_attr(OPTIONAL_ROLE_FALLBACKS[role]))
        node = source.model_copy(deep=True)
        _retag(node, role)

    if field == RoleField.MODEL:
        current, new = node.model_id, str(value)
    elif field == RoleField.TEMPERATURE:
        current, new = node.temperature, float(value)
    elif field == RoleField.TOP_P:
        current, new = node.top_p, float(value)
    else:
        current, new = node.reserved_output_tokens, int(value)

    if current == new:
        return Result(ok=True, value=(pack, False))

    if field == RoleField.MODEL:
        node.model_id = new
        node.base_model_config = catalog.get_model(new).base_config()
    elif field == RoleField.TEMPERATURE:
        node.temperature = new
    elif field == RoleField.TOP_P:
        node.top_p = new
    else:
        node.reserved_output_tokens = new

    setattr(updated, attr, node)
    return Result(ok=True, value=(updated, True))


def _retag(node: ModelRoleConfig, role: ModelRole) -> None:
    node.role = role
    for _, child in node.children():
        _retag(child, role)
