"""
Composer Kernel — Layout Validation

Validates layout documents and catalog definitions before they enter the
engine. Validation is structural (well-formed?) not semantic (does the bind
key resolve?). Bind keys are opaque here; only the resolver interprets them.

Two severities:
  validate_layout()  → errors; a document with errors is rejected by from_json
  layout_warnings()  → advisory Warnings; never rejected, never fixed
"""

from __future__ import annotations

from typing import Any

from composer.kernel.types import (
    ACTION_VARIANTS,
    AUTH_TYPES,
    GRID_COLUMNS,
    READ_SOURCES,
    VIZ_TYPES,
    WIDGET_TYPES,
    Warning,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_layout(layout: Any) -> list[str]:
    """
    Validate a layout document's structure.
    Returns a list of error strings. Empty list = valid.

    Checks:
    - version and meta.product are present
    - tabs/rows/columns/widgets are lists of objects
    - column widths are integers in 1..12
    - widget types and viz values are from the known vocabularies
    - every widget and widget action has a string bind

    Width sums and duplicate tab ids are advisory; see layout_warnings().
    """
    errors: list[str] = []

    if not isinstance(layout, dict):
        errors.append("Layout must be a non-null object")
        return errors

    if not isinstance(layout.get("version"), str):
        errors.append("Layout requires string 'version'")

    meta = layout.get("meta")
    if not isinstance(meta, dict):
        errors.append("Layout requires 'meta' object")
    else:
        if not isinstance(meta.get("product"), str):
            errors.append("meta requires string 'product'")
        if "title" in meta and not isinstance(meta["title"], str):
            errors.append("meta.title must be a string")
        if "tags" in meta and not isinstance(meta["tags"], list):
            errors.append("meta.tags must be a list")

    tabs = layout.get("tabs")
    if not isinstance(tabs, list):
        errors.append("Layout requires 'tabs' list")
        return errors

    for t, tab in enumerate(tabs):
        errors.extend(_validate_tab(tab, f"tabs[{t}]"))

    for key in ("theme", "settings"):
        if key in layout and layout[key] is not None and not isinstance(layout[key], dict):
            errors.append(f"'{key}' must be an object")

    return errors


def layout_warnings(layout: dict[str, Any]) -> list[Warning]:
    """
    Advisory checks the grid model assumes but the engine does not enforce.
    Call only on documents that passed validate_layout().
    """
    warnings: list[Warning] = []
    seen: set[str] = set()

    for tab in layout.get("tabs", []):
        tab_id = tab.get("id")
        if tab_id in seen:
            warnings.append(
                Warning(
                    code="DUPLICATE_TAB_ID",
                    message=f"Tab id '{tab_id}' appears more than once",
                    details={"tab_id": tab_id},
                )
            )
        seen.add(tab_id)

        for r, row in enumerate(tab.get("rows", [])):
            total = sum(col.get("width", 0) for col in row.get("columns", []))
            if total > GRID_COLUMNS:
                warnings.append(
                    Warning(
                        code="ROW_OVERFLOW",
                        message=f"Row {r} of tab '{tab_id}' spans {total} of {GRID_COLUMNS} columns",
                        details={"tab_id": tab_id, "row": r, "width": total},
                    )
                )

    return warnings


def validate_catalog(definition: Any) -> list[str]:
    """
    Validate a catalog namespace definition.
    Returns a list of error strings. Empty list = valid.
    """
    errors: list[str] = []

    if not isinstance(definition, dict):
        errors.append("Catalog must be a non-null object")
        return errors

    if not isinstance(definition.get("namespace"), str) or not definition["namespace"]:
        errors.append("Catalog requires non-empty string 'namespace'")

    for section in ("reads", "actions", "integrations"):
        if not isinstance(definition.get(section, {}), dict):
            errors.append(f"'{section}' must be an object")

    if errors:
        return errors

    for key, read in definition.get("reads", {}).items():
        if not isinstance(read, dict):
            errors.append(f"Read '{key}' must be an object")
            continue
        source = read.get("source")
        if source not in READ_SOURCES:
            errors.append(f"Read '{key}' has unknown source: {source}")
        elif source == "db" and not read.get("query"):
            errors.append(f"Read '{key}' (db) requires 'query'")
        elif source == "analytics" and not read.get("metric"):
            errors.append(f"Read '{key}' (analytics) requires 'metric'")
        elif source == "skill" and not read.get("skill"):
            errors.append(f"Read '{key}' (skill) requires 'skill'")
        elif source == "integration" and not read.get("endpoint"):
            errors.append(f"Read '{key}' (integration) requires 'endpoint'")
        ttl = read.get("cache_ttl")
        if ttl is not None and (not isinstance(ttl, int | float) or ttl < 0):
            errors.append(f"Read '{key}' has invalid cache_ttl: {ttl}")

    for key, action in definition.get("actions", {}).items():
        if not isinstance(action, dict):
            errors.append(f"Action '{key}' must be an object")
            continue
        if not isinstance(action.get("skill"), str) or not action["skill"]:
            errors.append(f"Action '{key}' requires 'skill'")
        if "args" in action and not isinstance(action["args"], dict):
            errors.append(f"Action '{key}' args must be an object")

    for name, integration in definition.get("integrations", {}).items():
        if not isinstance(integration, dict):
            errors.append(f"Integration '{name}' must be an object")
            continue
        if not isinstance(integration.get("scopes", []), list):
            errors.append(f"Integration '{name}' scopes must be a list")
        auth_type = integration.get("auth_type")
        if auth_type is not None and auth_type not in AUTH_TYPES:
            errors.append(f"Integration '{name}' has unknown auth_type: {auth_type}")

    return errors


# ---------------------------------------------------------------------------
# Per-node validators
# ---------------------------------------------------------------------------


def _validate_tab(tab: Any, path: str) -> list[str]:
    errors: list[str] = []
    if not isinstance(tab, dict):
        return [f"{path} must be an object"]

    if not isinstance(tab.get("id"), str) or not tab["id"]:
        errors.append(f"{path} requires string 'id'")
    if not isinstance(tab.get("title"), str):
        errors.append(f"{path} requires string 'title'")

    rows = tab.get("rows")
    if not isinstance(rows, list):
        errors.append(f"{path} requires 'rows' list")
        return errors

    for r, row in enumerate(rows):
        row_path = f"{path}.rows[{r}]"
        if not isinstance(row, dict):
            errors.append(f"{row_path} must be an object")
            continue
        columns = row.get("columns")
        if not isinstance(columns, list):
            errors.append(f"{row_path} requires 'columns' list")
            continue
        for c, col in enumerate(columns):
            errors.extend(_validate_column(col, f"{row_path}.columns[{c}]"))

    return errors


def _validate_column(col: Any, path: str) -> list[str]:
    errors: list[str] = []
    if not isinstance(col, dict):
        return [f"{path} must be an object"]

    width = col.get("width")
    if not isinstance(width, int) or isinstance(width, bool) or not 1 <= width <= GRID_COLUMNS:
        errors.append(f"{path} width must be an integer in 1..{GRID_COLUMNS}, got {width!r}")

    widgets = col.get("widgets")
    if not isinstance(widgets, list):
        errors.append(f"{path} requires 'widgets' list")
        return errors

    for w, widget in enumerate(widgets):
        errors.extend(_validate_widget(widget, f"{path}.widgets[{w}]"))

    return errors


def _validate_widget(widget: Any, path: str) -> list[str]:
    errors: list[str] = []
    if not isinstance(widget, dict):
        return [f"{path} must be an object"]

    if widget.get("type") not in WIDGET_TYPES:
        errors.append(f"{path} has unknown widget type: {widget.get('type')}")
    if not isinstance(widget.get("bind"), str):
        errors.append(f"{path} requires string 'bind'")
    if not isinstance(widget.get("title"), str):
        errors.append(f"{path} requires string 'title'")
    if widget.get("viz") is not None and widget["viz"] not in VIZ_TYPES:
        errors.append(f"{path} has unknown viz: {widget['viz']}")

    actions = widget.get("actions")
    if actions is not None:
        if not isinstance(actions, list):
            errors.append(f"{path} actions must be a list")
        else:
            for a, action in enumerate(actions):
                if not isinstance(action, dict) or not isinstance(action.get("bind"), str):
                    errors.append(f"{path}.actions[{a}] requires string 'bind'")
                elif action.get("variant") is not None and action["variant"] not in ACTION_VARIANTS:
                    errors.append(f"{path}.actions[{a}] has unknown variant: {action['variant']}")

    return errors
