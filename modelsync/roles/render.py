"""Rich tables for model packs, plan settings and the model catalog."""

from typing import List

from rich.table import Table

from ..config.schema_models import CustomModel, ModelPack, PlanSettings
from .tree import (
    effective_params, final_large_context_fallback, flatten_pack, max_convo_tokens, max_input_tokens,
)

DISABLED_MARK = "*"
DISABLED_FOOTNOTE = "* these models do not support changing temperature or top p"


def _table(title: str) -> Table:
    return Table(title=title, title_justify="left", show_header=True, header_style="bold magenta")


def indent_label(label: str, depth: int) -> str:
    if depth == 0:
        return label
    return " " * (depth - 1) + "└─ " + label


def model_pack_table(pack: ModelPack, all_properties: bool = False, title: str = "🤖 Models") -> Table:
    table = _table(title)
    table.add_column("Role", style="cyan", no_wrap=True)
    table.add_column("Model", style="yellow", no_wrap=True)
    if all_properties:
        table.add_column("Temperature", justify="right")
        table.add_column("Top P", justify="right")
        table.add_column("Max Input", justify="right")

    any_disabled = False
    for node in flatten_pack(pack):
        row = [indent_label(node.label, node.depth), node.config.model_id]
        if all_properties:
            temp, top_p, disabled = effective_params(node.config)
            mark = DISABLED_MARK if disabled else ""
            any_disabled = any_disabled or disabled
            row += [f"{mark}{temp:.1f}", f"{mark}{top_p:.1f}", f"{max_input_tokens(node.config)} 🪙"]
        table.add_row(*row)

    if any_disabled:
        table.caption = DISABLED_FOOTNOTE
        table.caption_justify = "left"
    return table


def planner_defaults_table(pack: ModelPack, title: str = "🧠 Planner Defaults") -> Table:
    planner = pack.planner
    table = _table(title)
    table.add_column("Max Tokens", justify="right")
    table.add_column("Max Convo Tokens", justify="right")
    table.add_row(str(final_large_context_fallback(planner).base_model_config.max_tokens),
                  str(max_convo_tokens(planner)))
    return table


def overrides_table(settings: PlanSettings, title: str = "⚙️  Planner Overrides") -> Table:
    overrides = settings.model_overrides
    table = _table(title)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")
    for label, value in (("Max Tokens", overrides.max_tokens),
                         ("Max Convo Tokens", overrides.max_convo_tokens),
                         ("Reserved Output Tokens", overrides.reserved_output_tokens)):
        table.add_row(label, "no override" if value is None else str(value))
    return table


def builtin_models_table(models: List[CustomModel], title: str = "🏠 Built-in Models") -> Table:
    table = _table(title)
    table.add_column("Model", style="cyan", no_wrap=True)
    for name in ("Input", "Output", "Reserved"):
        table.add_column(name, justify="right")
    for m in models:
        table.add_row(m.model_id, f"{m.max_tokens} 🪙", f"{m.max_output_tokens} 🪙", f"{m.reserved_output_tokens} 🪙")
    return table


def custom_models_table(models: List[CustomModel], title: str = "🛠️  Custom Models") -> Table:
    table = _table(title)
    table.add_column("#", justify="right")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("🪙", justify="right")
    for i, m in enumerate(models):
        table.add_row(str(i + 1), m.model_id, str(m.max_tokens))
    return table
