"""
Composer Kernel — the dashboard composition engine.

Components:
  layout       — layout document builder, serializer, templates, tab diff
  catalog      — namespace → read/action/integration definitions
  resolver     — bind key → live value (cached) or side effect (audited)
  intent       — edit text → structured Intent (fixed rule table)
  mutator      — (layout, intent) → draft layout + diff
  suggestions  — (layout, telemetry) → draft layouts + rationale
"""

from composer.kernel.catalog import CatalogRegistry, default_registry, namespace_for_product
from composer.kernel.errors import (
    ActionError,
    ComposerError,
    FetchError,
    NotFoundError,
    ParseError,
    SkillMissingError,
)
from composer.kernel.intent import IntentParser, parse_intent
from composer.kernel.layout import LayoutBuilder, diff, from_json, generate_default, to_json, widget_diff
from composer.kernel.mutator import LayoutMutator
from composer.kernel.resolver import BindingResolver
from composer.kernel.suggestions import SuggestionEngine, generate_proactive_suggestions
from composer.kernel.types import DesignerRequest, DesignerResponse, Intent, LayoutDiff
from composer.kernel.validation import layout_warnings, validate_catalog, validate_layout

__all__ = [
    "ActionError",
    "BindingResolver",
    "CatalogRegistry",
    "ComposerError",
    "DesignerRequest",
    "DesignerResponse",
    "FetchError",
    "Intent",
    "IntentParser",
    "LayoutBuilder",
    "LayoutDiff",
    "LayoutMutator",
    "NotFoundError",
    "ParseError",
    "SkillMissingError",
    "SuggestionEngine",
    "default_registry",
    "diff",
    "from_json",
    "generate_default",
    "generate_proactive_suggestions",
    "layout_warnings",
    "namespace_for_product",
    "parse_intent",
    "to_json",
    "validate_catalog",
    "validate_layout",
    "widget_diff",
]
