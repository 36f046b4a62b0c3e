"""
Configuration Loader (``asset_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into typed
``asset_config.schema`` dataclass instances.  Callers obtain
configuration through ``asset_config.get_active_config()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  No dependency on modules,
engines or services.

Invariants enforced
-------------------
* Every parse failure raises ``ConfigurationError`` naming the source
  file; there are no silent defaults for required keys.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  parsed source.

Failure modes
-------------
* Missing file, malformed YAML, missing required keys, unknown
  depreciation methods or batch frequencies, non-numeric amounts and
  duplicate policies all raise ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from asset_config.schema import (
    AllocationSettings,
    ApprovalPolicyDef,
    ApprovalRuleDef,
    LifecycleConfig,
    ValuationSettings,
)
from asset_kernel.exceptions import ConfigurationError

DEPRECIATION_METHODS = ("StraightLine", "WrittenDownValue", "DoubleDecliningBalance")
BATCH_FREQUENCIES = ("daily", "monthly")
APPROVAL_WORKFLOWS = ("procurement", "disposal")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        ConfigurationError: if the file is missing, is not valid YAML, or
            does not contain a mapping.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigurationError("configuration file not found", source=str(path)) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML: {exc}", source=str(path)) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("top level must be a mapping", source=str(path))
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _amount(value: Any, name: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, (bool, float)):
        raise ValueError(f"{name} must be a quoted decimal string or integer, got {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{name} is not a number: {value!r}") from exc
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"{name} must be a non-negative amount, got {value!r}")
    return str(amount)


def parse_valuation(data: dict[str, Any]) -> ValuationSettings:
    settings = ValuationSettings(
        default_method=data.get("default_method", "StraightLine"),
        batch_frequency=data.get("batch_frequency", "monthly"),
    )
    if settings.default_method not in DEPRECIATION_METHODS:
        raise ValueError(f"unknown depreciation method {settings.default_method!r}")
    if settings.batch_frequency not in BATCH_FREQUENCIES:
        raise ValueError(f"unknown batch frequency {settings.batch_frequency!r}")
    return settings


def parse_allocation(data: dict[str, Any]) -> AllocationSettings:
    days = data.get("due_reminder_days", 3)
    if isinstance(days, bool) or not isinstance(days, int) or days < 0:
        raise ValueError(f"due_reminder_days must be a non-negative integer, got {days!r}")
    return AllocationSettings(due_reminder_days=days)


def parse_rule(data: dict[str, Any]) -> ApprovalRuleDef:
    """Parse an ApprovalRuleDef from a dict."""
    min_approvers = data.get("min_approvers", 1)
    if isinstance(min_approvers, bool) or not isinstance(min_approvers, int) or min_approvers < 1:
        raise ValueError(
            f"rule {data.get('rule_name')!r}: min_approvers must be a positive integer"
        )
    min_amount = _amount(data.get("min_amount"), "min_amount")
    max_amount = _amount(data.get("max_amount"), "max_amount")
    if min_amount is not None and max_amount is not None:
        if Decimal(min_amount) >= Decimal(max_amount):
            raise ValueError(
                f"rule {data.get('rule_name')!r}: min_amount must be below max_amount"
            )
    return ApprovalRuleDef(
        rule_name=data["rule_name"],
        priority=int(data["priority"]),
        min_amount=min_amount,
        max_amount=max_amount,
        required_roles=tuple(data.get("required_roles", ())),
        min_approvers=min_approvers,
        require_distinct_roles=bool(data.get("require_distinct_roles", False)),
        guard_expression=data.get("guard_expression"),
        auto_approve_below=_amount(data.get("auto_approve_below"), "auto_approve_below"),
    )


def parse_policy(data: dict[str, Any]) -> ApprovalPolicyDef:
    """Parse an ApprovalPolicyDef from a dict."""
    workflow = data["applies_to_workflow"]
    if workflow not in APPROVAL_WORKFLOWS:
        raise ValueError(f"policy {data.get('policy_name')!r}: unknown workflow {workflow!r}")
    return ApprovalPolicyDef(
        policy_name=data["policy_name"],
        applies_to_workflow=workflow,
        version=int(data.get("version", 1)),
        rules=tuple(parse_rule(r) for r in data.get("rules", ())),
    )


def parse_config(data: dict[str, Any], source: str | None = None) -> LifecycleConfig:
    """
    Parse a whole configuration set.

    Raises:
        ConfigurationError: wrapping any missing key or invalid value.
    """
    try:
        policies = tuple(parse_policy(p) for p in data.get("approval_policies", ()))
        seen: set[str] = set()
        for policy in policies:
            if policy.applies_to_workflow in seen:
                raise ValueError(
                    f"more than one approval policy for workflow "
                    f"{policy.applies_to_workflow!r}"
                )
            seen.add(policy.applies_to_workflow)
        return LifecycleConfig(
            config_id=data["config_id"],
            version=int(data.get("version", 1)),
            valuation=parse_valuation(data.get("valuation") or {}),
            allocation=parse_allocation(data.get("allocation") or {}),
            approval_policies=policies,
            checksum=compute_checksum(data),
            source=source,
        )
    except KeyError as exc:
        raise ConfigurationError(f"missing required key {exc}", source=source) from exc
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(str(exc), source=source) from exc


def load_config(path: Path) -> LifecycleConfig:
    """Load and parse the configuration set at ``path``."""
    return parse_config(load_yaml_file(path), source=str(path))
