"""Dangerous-permission detection driven by :mod:`permission_rules`."""

from __future__ import annotations

import json
from typing import Any, Mapping

from ..domain.models import DangerousPermission
from .field_resolution import PERMISSION_FIELDS, resolve_text
from .permission_rules import DEFAULT_PERMISSION_RULES, PermissionRuleTable


def describe_permission(descriptor: Any) -> str:
    """Return the text used to classify and display a permission descriptor."""

    if descriptor is None:
        return ""
    if isinstance(descriptor, str):
        return descriptor
    if isinstance(descriptor, Mapping):
        return resolve_text(descriptor, PERMISSION_FIELDS["descriptor"])
    return str(descriptor)


def _display_text(descriptor: Any) -> str:
    if isinstance(descriptor, Mapping):
        text = resolve_text(descriptor, ("description", "info", "status"))
        if text:
            return text
        return json.dumps(descriptor, sort_keys=True, default=str)
    return describe_permission(descriptor)


def detect_dangerous_permissions(
    permissions: Mapping[str, Any],
    rules: PermissionRuleTable = DEFAULT_PERMISSION_RULES,
) -> tuple[DangerousPermission, ...]:
    """Return the permissions considered dangerous, in input order.

    A permission is dangerous when its descriptor text matches the rule
    table's descriptor pattern or its name contains one of the keywords.
    Entries without a descriptor are skipped.
    """

    if not isinstance(permissions, Mapping):
        return ()
    descriptor_regex = rules.descriptor_regex
    name_regex = rules.name_regex
    dangerous: list[DangerousPermission] = []
    for name, descriptor in permissions.items():
        if descriptor is None or descriptor == "":
            continue
        text = describe_permission(descriptor)
        by_descriptor = bool(descriptor_regex.search(text))
        by_name = bool(name_regex and name_regex.search(str(name)))
        if by_descriptor or by_name:
            dangerous.append(
                DangerousPermission(
                    name=str(name), descriptor=_display_text(descriptor)
                )
            )
    return tuple(dangerous)
