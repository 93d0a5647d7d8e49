"""Expansion of templated configuration values.

Configuration values such as the upload folder may reference the record being
processed, e.g. ``1:/imports/{table}/``. Placeholders are filled from the
operation context; unknown placeholders are left as they are.
"""

import logging
import string
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


class _KeepMissing(dict):
    def __missing__(self, key):
        return "{" + key + "}"


class ConfigResolver:
    """Resolves templated configuration strings against a context."""

    def __init__(self, context: Optional[Mapping[str, Any]] = None):
        self.context: Dict[str, Any] = dict(context or {})

    @classmethod
    def for_operation(cls, table: str, remote_id: str, data: Mapping[str, Any]) -> "ConfigResolver":
        """Build a resolver whose context is the operation's table, remote id and scalar data fields."""
        context = {
            key: value for key, value in data.items()
            if isinstance(value, (str, int, float, bool))
        }
        context["table"] = table
        context["remote_id"] = remote_id
        return cls(context)

    def resolve(self, template: Any, options: Optional[Mapping[str, Any]] = None) -> str:
        """Expand ``template`` and apply ``options``.

        Supported options:
            default: value used when the expansion is empty
            case: "lower" or "upper"
        """
        options = options or {}
        template = "" if template is None else str(template)

        try:
            value = string.Formatter().vformat(template, (), _KeepMissing(self.context))
        except (ValueError, IndexError, AttributeError, KeyError) as e:
            logger.warning(f"Could not expand template {template!r}: {e}")
            value = template

        if not value and "default" in options:
            value = str(options["default"])

        case = options.get("case")
        if case == "lower":
            value = value.lower()
        elif case == "upper":
            value = value.upper()

        return value
