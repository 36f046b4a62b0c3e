"""
Tests for lifecycle configuration loading and bridging.

Covers:
- The shipped default set: settings, policy rules, checksum
- Loader validation: missing keys, malformed YAML, bad amounts,
  unknown methods/workflows, duplicate policies
- Bridges: definitions -> ApprovalPolicy engine inputs
- get_active_config: path override and the ASSET_CONFIG_TRACE record
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from asset_config import get_active_config
from asset_config.bridges import approval_policy_from_def, build_approval_policy_map
from asset_config.loader import compute_checksum, load_config, parse_config
from asset_kernel.exceptions import ConfigurationError


def _minimal(**overrides) -> dict:
    data = {"config_id": "test-set", "version": 2}
    data.update(overrides)
    return data


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "set.yaml"
    path.write_text(yaml.safe_dump(data) if not isinstance(data, str) else data)
    return path


# =========================================================================
# Default set
# =========================================================================


class TestDefaultSet:

    def test_settings(self, lifecycle_config):
        assert lifecycle_config.config_id == "asset-lifecycle-default"
        assert lifecycle_config.valuation.default_method == "StraightLine"
        assert lifecycle_config.valuation.batch_frequency == "monthly"
        assert lifecycle_config.allocation.due_reminder_days == 3

    def test_one_policy_per_workflow(self, lifecycle_config):
        workflows = sorted(p.applies_to_workflow for p in lifecycle_config.approval_policies)
        assert workflows == ["disposal", "procurement"]

    def test_capital_purchase_rule(self, lifecycle_config):
        policies = build_approval_policy_map(lifecycle_config)
        capital = next(
            r for r in policies["procurement"].rules if r.rule_name == "capital_purchase"
        )
        assert capital.min_amount == Decimal("50000")
        assert capital.max_amount is None
        assert capital.min_approvers == 2
        assert capital.require_distinct_roles is True
        assert capital.required_roles == ("department_head", "finance")

    def test_checksum_is_stable(self, lifecycle_config):
        assert len(lifecycle_config.checksum) == 64
        assert get_active_config().checksum == lifecycle_config.checksum

    def test_trace_logged(self, captured_logs):
        get_active_config()
        traces = [r for r in captured_logs() if r["message"] == "ASSET_CONFIG_TRACE"]
        assert traces
        assert traces[-1]["config_set_id"] == "asset-lifecycle-default"
        assert traces[-1]["approval_policy_count"] == 2


# =========================================================================
# Loader
# =========================================================================


class TestLoader:

    def test_defaults_fill_missing_sections(self):
        config = parse_config(_minimal())
        assert config.valuation.default_method == "StraightLine"
        assert config.allocation.due_reminder_days == 3
        assert config.approval_policies == ()

    def test_path_override(self, tmp_path):
        path = _write(tmp_path, _minimal(valuation={"batch_frequency": "daily"}))

        config = get_active_config(path)

        assert config.config_id == "test-set"
        assert config.valuation.batch_frequency == "daily"
        assert config.source == str(path)

    def test_checksum_changes_with_content(self):
        assert compute_checksum(_minimal()) != compute_checksum(_minimal(version=3))
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "absent.yaml")

    def test_malformed_yaml(self, tmp_path):
        with pytest.raises(ConfigurationError, match="invalid YAML"):
            load_config(_write(tmp_path, "config_id: [unclosed"))

    def test_top_level_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(_write(tmp_path, "- a\n- b\n"))

    def test_missing_config_id(self):
        with pytest.raises(ConfigurationError, match="config_id"):
            parse_config({"version": 1})

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"valuation": {"default_method": "SumOfYearsDigits"}}, "depreciation method"),
            ({"valuation": {"batch_frequency": "hourly"}}, "batch frequency"),
            ({"allocation": {"due_reminder_days": -1}}, "due_reminder_days"),
            ({"allocation": {"due_reminder_days": True}}, "due_reminder_days"),
        ],
    )
    def test_invalid_settings(self, overrides, message):
        with pytest.raises(ConfigurationError, match=message):
            parse_config(_minimal(**overrides))

    @pytest.mark.parametrize(
        "rule_overrides,message",
        [
            ({"max_amount": 100.5}, "quoted decimal"),
            ({"max_amount": "abc"}, "not a number"),
            ({"min_amount": "-1"}, "non-negative"),
            ({"min_approvers": 0}, "min_approvers"),
            ({"min_amount": "100", "max_amount": "100"}, "below max_amount"),
        ],
    )
    def test_invalid_rule(self, rule_overrides, message):
        rule = {"rule_name": "r", "priority": 1, **rule_overrides}
        policy = {"policy_name": "p", "applies_to_workflow": "disposal", "rules": [rule]}
        with pytest.raises(ConfigurationError, match=message):
            parse_config(_minimal(approval_policies=[policy]))

    def test_unknown_workflow(self):
        policy = {"policy_name": "p", "applies_to_workflow": "allocation"}
        with pytest.raises(ConfigurationError, match="unknown workflow"):
            parse_config(_minimal(approval_policies=[policy]))

    def test_duplicate_policies(self):
        policy = {"policy_name": "p", "applies_to_workflow": "disposal"}
        with pytest.raises(ConfigurationError, match="more than one"):
            parse_config(_minimal(approval_policies=[policy, dict(policy, policy_name="q")]))

    def test_integer_amounts_accepted(self):
        rule = {"rule_name": "r", "priority": 1, "max_amount": 10000}
        policy = {"policy_name": "p", "applies_to_workflow": "disposal", "rules": [rule]}

        config = parse_config(_minimal(approval_policies=[policy]))

        assert config.approval_policies[0].rules[0].max_amount == "10000"


# =========================================================================
# Bridges
# =========================================================================


class TestBridges:

    def test_amounts_become_decimals(self, lifecycle_config):
        disposal_def = next(
            p for p in lifecycle_config.approval_policies if p.applies_to_workflow == "disposal"
        )

        policy = approval_policy_from_def(disposal_def)

        low = next(r for r in policy.rules if r.rule_name == "low_value_disposal")
        assert low.max_amount == Decimal("10000")
        assert low.min_amount is None
        assert policy.policy_hash

    def test_policy_hash_tracks_definition(self):
        rule = {"rule_name": "r", "priority": 1, "max_amount": "100"}
        policy = {"policy_name": "p", "applies_to_workflow": "disposal", "rules": [rule]}
        first = parse_config(_minimal(approval_policies=[policy]))
        changed = parse_config(_minimal(approval_policies=[
            dict(policy, rules=[dict(rule, max_amount="200")]),
        ]))

        assert (
            build_approval_policy_map(first)["disposal"].policy_hash
            != build_approval_policy_map(changed)["disposal"].policy_hash
        )
