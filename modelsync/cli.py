import asyncio
import os
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from modelsync.api.client import HttpModelsApi
from modelsync.config.loader import load_client_config
from modelsync.config.schema_client import ClientCfg
from modelsync.config.schema_models import PlanSettings
from modelsync.console.prompts import confirm_yes_no, get_user_input, select_from_list
from modelsync.models.catalog import BUILT_IN_MODELS, ModelCatalog
from modelsync.roles import render
from modelsync.roles.updater import Selector, SettingsUpdater, parse_selector
from modelsync.sync.diff import ADDED, UPDATED
from modelsync.sync.manager import ModelsSync, SaveOutcome
from modelsync.util.const import (
    ALL_ROLES, OVERRIDE_SETTINGS, ROLE_DESCRIPTIONS, SETTING_DESCRIPTIONS, RoleField,
)
from modelsync.util.editors import detect_editors, open_in_editor
from modelsync.util.logging import log, set_level
from modelsync.util.types import ErrorInfo

app = typer.Typer(add_completion=False, help="modelsync - custom models, providers and model packs")
models_app = typer.Typer(help="Show and manage model settings")
app.add_typer(models_app, name="models")

# Informal names accepted for built-in packs
MODEL_PACK_ALIASES = {
    "daily": "daily-driver",
    "opus-4-planner": "opus-planner",
}

ACTION_LABELS = {ADDED: "✅ Added", UPDATED: "🔄 Updated"}


def _fail(error: ErrorInfo) -> None:
    typer.echo(f"[error] {error.code}: {error.message}", err=True)
    raise typer.Exit(code=1)


def _client_cfg() -> ClientCfg:
    res = load_client_config(os.getcwd())
    if not res.ok:
        _fail(res.error)
    return res.value


def _echo_table(table: Table) -> None:
    console = Console()
    console.print(table)
    console.print()


def _render_settings(title: str, settings: PlanSettings, catalog: ModelCatalog, all_properties: bool) -> None:
    typer.secho(title, bold=True, fg=typer.colors.BRIGHT_GREEN)
    typer.echo()
    pack = settings.model_pack or catalog.default_pack()
    typer.secho("🎛️  Current Model Pack", bold=True, fg=typer.colors.BRIGHT_CYAN)
    typer.echo(f"{pack.name}: {pack.description}")
    typer.echo()
    _echo_table(render.model_pack_table(pack, all_properties))
    if all_properties:
        _echo_table(render.planner_defaults_table(pack))
        _echo_table(render.overrides_table(settings))


@app.callback()
def root(log_level: str = typer.Option("warn", "--log-level", help="debug, info, warn or error")):
    """Reconcile local model configuration with the server."""
    try:
        set_level(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e))


@models_app.command("show")
def show(all_properties: bool = typer.Option(False, "--all", "-a", help="Show all properties")):
    """Show the current plan's model settings."""
    cfg = _client_cfg()
    if not cfg.plan_id:
        _fail(ErrorInfo("config.no_plan", "No current plan; set plan_id in client.yaml or MODELSYNC_PLAN_ID"))

    async def run():
        async with HttpModelsApi(cfg) as api:
            return await asyncio.gather(api.get_settings(cfg.plan_id, cfg.branch), api.list_model_packs())

    settings_res, packs_res = asyncio.run(run())
    for res in (settings_res, packs_res):
        if not res.ok:
            _fail(res.error)
    catalog = ModelCatalog(custom_packs=packs_res.value, is_cloud=cfg.is_cloud)
    _render_settings(f"{cfg.plan_id} Model Settings", settings_res.value, catalog, all_properties)


@models_app.command("default")
def default(all_properties: bool = typer.Option(False, "--all", "-a", help="Show all properties")):
    """Show org-wide default model settings for new plans."""
    cfg = _client_cfg()

    async def run():
        async with HttpModelsApi(cfg) as api:
            return await api.get_org_default_settings()

    res = asyncio.run(run())
    if not res.ok:
        _fail(res.error)
    _render_settings("Org-Wide Default Model Settings", res.value, ModelCatalog(is_cloud=cfg.is_cloud),
                     all_properties)


@models_app.command("available")
def available(custom_only: bool = typer.Option(False, "--custom", "-c", help="List custom models only")):
    """List built-in and custom models."""
    cfg = _client_cfg()

    async def run():
        async with HttpModelsApi(cfg) as api:
            return await api.list_custom_models()

    res = asyncio.run(run())
    if not res.ok:
        _fail(res.error)

    if not custom_only:
        _echo_table(render.builtin_models_table(BUILT_IN_MODELS))
    if res.value:
        _echo_table(render.custom_models_table(res.value))
    elif custom_only:
        typer.echo("🤷 No custom models")


async def _confirm_drop_local(path: Path) -> bool:
    typer.secho("⚠️  The models file has local changes", bold=True, fg=typer.colors.BRIGHT_YELLOW)
    typer.echo(f"\nPath → {path}\n")
    typer.echo("If you continue, local changes will be dropped in favor of the latest server state\n")
    typer.echo("To keep the local version instead, quit and run 'modelsync models custom --save'\n")
    return await confirm_yes_no("Drop local changes and continue?")


def _print_save_result(outcome) -> None:
    if outcome.no_changes:
        typer.echo("🤷 No changes to custom models/providers/model packs")
        return
    for action, kind, key in outcome.diff.lines():
        if action in ACTION_LABELS:
            typer.echo(f"{ACTION_LABELS[action]} custom {kind} → " + typer.style(key, bold=True, fg="bright_green"))
        else:
            typer.echo(f"❌ Removed custom {kind} → " + typer.style(key, bold=True, fg="bright_red"))


@models_app.command("custom")
def custom(save: bool = typer.Option(False, "--save", help="Save custom models"),
           file: Optional[Path] = typer.Option(None, "--file", "-f", help="Path to custom models file")):
    """Manage custom models, providers, and model packs."""
    cfg = _client_cfg()
    if file is None and cfg.models_file:
        file = Path(cfg.models_file).expanduser()
    save_cmd = "modelsync models custom --save" + (f" --file {file}" if file else "")

    async def run():
        async with HttpModelsApi(cfg) as api:
            sync = ModelsSync(api, cfg.is_cloud, _confirm_drop_local)
            if save:
                return await sync.save(file)

            opened = await sync.open(file)
            if not opened.ok or opened.value.cancelled:
                return opened
            outcome = opened.value
            if outcome.wrote_example:
                typer.echo(f"🧠 Example models file → {outcome.path}")
            else:
                typer.echo(f"🧠 Models file → {outcome.path}")
            typer.echo("👨‍💻 Edit it, then come back here to save\n")

            editors = detect_editors()
            if not editors:
                typer.echo(f"To save changes, run '{save_cmd}'")
                return opened
            manual = "Open manually"
            choice = await select_from_list("Open the file now?", [f"Open with {e.name}" for e in editors] + [manual])
            if choice is None or choice == manual:
                typer.echo(f"To save changes, run '{save_cmd}'")
                return opened
            editor = editors[[f"Open with {e.name}" for e in editors].index(choice)]
            res = open_in_editor(editor, str(outcome.path))
            if not res.ok:
                return res
            typer.echo("📝 Opened in editor\n")
            if not await confirm_yes_no("Ready to save?"):
                typer.echo("🙅 Update canceled\n")
                typer.echo(f"To save changes, run '{save_cmd}'")
                return opened
            return await sync.save(file)

    res = asyncio.run(run())
    if not res.ok:
        _fail(res.error)
    if isinstance(res.value, SaveOutcome):
        _print_save_result(res.value)


async def _interactive_selector(catalog: ModelCatalog) -> Optional[Selector]:
    opts = ["🎛️  choose a model pack to change all roles at once"]
    opts += [f"🤖 role | {r.value} → {ROLE_DESCRIPTIONS[r]}" for r in ALL_ROLES]
    opts += [f"⚙️  override | {s} → {SETTING_DESCRIPTIONS[s]}" for s in OVERRIDE_SETTINGS]
    choice = await select_from_list("Choose a new model pack, or select a role or override to update:", opts)
    if choice is None:
        return None
    idx = opts.index(choice)
    if idx == 0:
        packs = catalog.model_packs()
        labels = [("Built-in | " if i < len(catalog.builtin_packs()) else "Custom | ") + p.name
                  for i, p in enumerate(packs)]
        picked = await select_from_list("Select a model pack:", labels)
        return None if picked is None else Selector(model_pack=packs[labels.index(picked)].name)
    if idx <= len(ALL_ROLES):
        return Selector(role=ALL_ROLES[idx - 1])
    return Selector(setting=OVERRIDE_SETTINGS[idx - 1 - len(ALL_ROLES)])


async def _complete_selector(selector: Selector, catalog: ModelCatalog) -> Optional[Selector]:
    """Prompt for whatever the command line left out."""
    if selector.role and selector.property is None and selector.value is None:
        labels = {"Select a model": RoleField.MODEL, "Set temperature": RoleField.TEMPERATURE,
                  "Set top-p": RoleField.TOP_P, "Set reserved output tokens": RoleField.RESERVED_OUTPUT_TOKENS}
        picked = await select_from_list("Select a property to update:", list(labels))
        if picked is None:
            return None
        selector.property = labels[picked]

    if selector.role and selector.value is None:
        if selector.property in (None, RoleField.MODEL):
            ids = catalog.compatible_model_ids(selector.role)
            selector.value = await select_from_list(f"Select a model for {selector.role.value}:", ids)
        else:
            hint = {RoleField.TEMPERATURE: " (-2.0 to 2.0)", RoleField.TOP_P: " (0.0 to 1.0)"}
            selector.value = await get_user_input(
                f"Set {selector.property.value}{hint.get(selector.property, '')}", required=True)
        if selector.value is None:
            return None

    if selector.setting and selector.value is None:
        selector.value = await get_user_input(f"Set {selector.setting} (leave blank for no value)")
        if selector.value is None:
            return None
    return selector


@app.command("set-model")
def set_model(args: List[str] = typer.Argument(None, help="[model-pack-or-role-or-setting] [property-or-value] [value]"),
              org_default: bool = typer.Option(False, "--default", help="Update org-wide default settings")):
    """Update current plan model settings."""
    cfg = _client_cfg()
    args = list(args or [])
    if len(args) > 3:
        raise typer.BadParameter("at most 3 arguments")
    if not org_default and not cfg.plan_id:
        _fail(ErrorInfo("config.no_plan", "No current plan; set plan_id in client.yaml or MODELSYNC_PLAN_ID"))

    async def run():
        async with HttpModelsApi(cfg) as api:
            get_settings = api.get_org_default_settings() if org_default else api.get_settings(cfg.plan_id, cfg.branch)
            settings_res, models_res, packs_res = await asyncio.gather(
                get_settings, api.list_custom_models(), api.list_model_packs())
            for res in (settings_res, models_res, packs_res):
                if not res.ok:
                    return res

            catalog = ModelCatalog(models_res.value, packs_res.value, is_cloud=cfg.is_cloud)
            sel_res = parse_selector(args, catalog, MODEL_PACK_ALIASES)
            if not sel_res.ok:
                return sel_res
            selector = sel_res.value
            if selector.is_empty():
                selector = await _interactive_selector(catalog)
            if selector is not None:
                selector = await _complete_selector(selector, catalog)
            if selector is None:
                return None

            updated = SettingsUpdater(catalog).apply(selector, settings_res.value)
            if not updated.ok or updated.value is None:
                return updated

            if org_default:
                return await api.update_org_default_settings(updated.value)
            return await api.update_settings(cfg.plan_id, cfg.branch, updated.value)

    res = asyncio.run(run())
    if res is None:
        return
    if not res.ok:
        _fail(res.error)
    if res.value is None:
        typer.echo("🤷 No model settings were updated")
        return
    log("INFO", "cli", "settings_updated", org_default=org_default)
    typer.echo(res.value)


def main():
    app()


if __name__ == "__main__":
    main()
