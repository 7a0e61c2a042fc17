"""Apply one user-selected change to plan settings."""

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..config.schema_models import PlanSettings
from ..models.catalog import ModelCatalog
from ..util.const import ALL_ROLES, OVERRIDE_SETTINGS, ModelRole, RoleField, compact
from ..util.logging import log
from ..util.types import Result
from .tree import set_field

# override setting -> ModelOverrides attribute, minimum accepted value
_OVERRIDE_ATTRS = {
    "max-tokens": ("max_tokens", 1),
    "max-convo-tokens": ("max_convo_tokens", 1),
    "reserved-output-tokens": ("reserved_output_tokens", 0),
}


@dataclass
class Selector:
    """What to change: a whole pack, one role field, or an override."""
    model_pack: Optional[str] = None
    role: Optional[ModelRole] = None
    property: Optional[RoleField] = None
    value: Optional[str] = None
    setting: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.model_pack or self.role or self.setting)


def match_role(token: str) -> Optional[ModelRole]:
    for role in ALL_ROLES:
        if compact(role.value) == compact(token):
            return role
    return None


def match_property(token: str) -> Optional[RoleField]:
    for field in RoleField:
        if compact(field.value) == compact(token):
            return field
    return None


def match_setting(token: str) -> Optional[str]:
    for setting in OVERRIDE_SETTINGS:
        if compact(setting) == compact(token):
            return setting
    return None


def parse_selector(args: List[str], catalog: ModelCatalog,
                   aliases: Optional[Dict[str, str]] = None) -> Result[Selector]:
    """Interpret ``[pack-or-role-or-setting] [property-or-value] [value]``."""
    if not args:
        return Result(ok=True, value=Selector())

    first = args[0]
    pack = catalog.find_pack((aliases or {}).get(first.lower(), first))
    if pack is not None:
        return Result(ok=True, value=Selector(model_pack=pack.name))

    role = match_role(first)
    if role is not None:
        selector = Selector(role=role)
        if len(args) > 1:
            prop = match_property(args[1])
            if prop is not None:
                selector.property = prop
                if len(args) > 2:
                    selector.value = args[2]
            else:
                selector.value = args[1]
        return Result(ok=True, value=selector)

    setting = match_setting(first)
    if setting is not None:
        return Result(ok=True, value=Selector(setting=setting, value=args[1] if len(args) > 1 else None))

    return Result.fail("settings.unknown_selector",
                       f"'{first}' is not a model pack, role, or setting", token=first)


class SettingsUpdater:
    def __init__(self, catalog: ModelCatalog) -> None:
        self.catalog = catalog

    def apply(self, selector: Selector, settings: PlanSettings) -> Result[Optional[PlanSettings]]:
        """Return the updated settings, or a None value when nothing changed.

        ``settings`` itself is never modified.
        """
        updated = settings.model_copy(deep=True)

        if selector.model_pack:
            pack = self.catalog.find_pack(selector.model_pack)
            if pack is None:
                return Result.fail("settings.unknown_selector", f"Unknown model pack '{selector.model_pack}'")
            updated.model_pack = pack.model_copy(deep=True)
        elif selector.setting:
            res = self._apply_override(updated, selector.setting, selector.value)
            if not res.ok:
                return Result(ok=False, error=res.error)
        elif selector.role:
            res = self._apply_role(updated, selector)
            if not res.ok:
                return Result(ok=False, error=res.error)
        else:
            return Result.fail("settings.unknown_selector", "Nothing selected to update")

        if updated == settings:
            log("DEBUG", "updater", "no_changes")
            return Result(ok=True, value=None)
        return Result(ok=True, value=updated)

    def _apply_override(self, settings: PlanSettings, setting: str, value: Optional[str]) -> Result[None]:
        if setting not in _OVERRIDE_ATTRS:
            return Result.fail("settings.unknown_selector", f"Unknown setting '{setting}'")
        attr, minimum = _OVERRIDE_ATTRS[setting]

        if value is None or value.strip() == "":
            setattr(settings.model_overrides, attr, None)
            return Result(ok=True)
        try:
            n = int(value)
        except ValueError:
            return Result.fail("settings.invalid_value", f"Invalid value for {setting}: {value}")
        if n < minimum:
            return Result.fail("settings.invalid_value", f"Invalid value for {setting}: {value}")
        setattr(settings.model_overrides, attr, n)
        return Result(ok=True)

    def _apply_role(self, settings: PlanSettings, selector: Selector) -> Result[None]:
        role = selector.role
        field = selector.property or RoleField.MODEL
        value = selector.value
        if value is None or value.strip() == "":
            return Result.fail("settings.invalid_value", f"A value is required to set {role.value} {field.value}")
        value = value.strip()

        if field == RoleField.MODEL:
            if self.catalog.get_model(value) is None:
                return Result.fail("settings.unknown_model", f"Unknown model '{value}'", model_id=value)
            if value not in self.catalog.compatible_model_ids(role):
                return Result.fail("settings.incompatible_model",
                                   f"Model '{value}' is not compatible with the {role.value} role",
                                   model_id=value, role=role.value)
            parsed = value
        else:
            try:
                parsed = int(value) if field == RoleField.RESERVED_OUTPUT_TOKENS else float(value)
            except ValueError:
                return Result.fail("settings.invalid_value", f"Invalid value for {field.value}: {value}")

        pack = settings.model_pack or self.catalog.default_pack()
        res = set_field(pack, role, field, parsed, self.catalog)
        if not res.ok:
            return Result(ok=False, error=res.error)
        updated, changed = res.value
        if changed:
            settings.model_pack = updated
        return Result(ok=True)
