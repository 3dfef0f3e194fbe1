"""Unit tests for drift detection and destroy planning."""

import pytest

from rds_params.errors import InvalidConfigurationError
from rds_params.models import ParameterSet
from rds_params.reconciler import diff, plan_destroy
from rds_params.types import SettingSource
from tests.fakes import setting


def _desired(*settings, **kwargs):
    return ParameterSet(name="app-mysql", family="mysql8.0", settings=list(settings), **kwargs)


class TestToSet:
    def test_unchanged_settings_produce_no_drift(self, observed_group):
        desired = _desired(
            setting("character_set_server", "latin1"),
            setting("max_connections", "100"),
            setting("slow_query_log", "1"),
        )
        result = diff(desired, observed_group)
        assert result.is_empty

    def test_changed_and_new_settings_in_declared_order(self, observed_group):
        desired = _desired(
            setting("tx_isolation", "READ-COMMITTED"),
            setting("character_set_server", "utf8mb4"),
            setting("max_connections", "100"),
            setting("slow_query_log", "1"),
        )
        result = diff(desired, observed_group)
        assert [s.name for s in result.to_set] == ["tx_isolation", "character_set_server"]
        assert result.to_reset == []

    def test_apply_timing_change_is_drift(self, observed_group):
        desired = _desired(
            setting("character_set_server", "latin1"),
            setting("max_connections", "100", reboot=True),
            setting("slow_query_log", "1"),
        )
        result = diff(desired, observed_group)
        assert [s.name for s in result.to_set] == ["max_connections"]
        assert result.pending_reboot_names() == ["max_connections"]

    def test_names_compare_case_insensitively(self, observed_group):
        desired = _desired(
            setting("Character_Set_Server", "latin1"),
            setting("MAX_CONNECTIONS", "100"),
            setting("slow_query_log", "1"),
        )
        assert diff(desired, observed_group).is_empty

    def test_value_matching_engine_default_is_not_drift(self, observed_group):
        desired = _desired(
            setting("character_set_server", "latin1"),
            setting("max_connections", "100"),
            setting("slow_query_log", "1"),
            setting("binlog_format", "ROW"),
        )
        assert diff(desired, observed_group).to_set == []

    def test_reboot_timing_over_engine_default_is_drift(self, observed_group):
        desired = _desired(
            setting("character_set_server", "latin1"),
            setting("max_connections", "100"),
            setting("slow_query_log", "1"),
            setting("binlog_format", "ROW", reboot=True),
        )
        result = diff(desired, observed_group)
        assert [s.name for s in result.to_set] == ["binlog_format"]
        assert result.pending_reboot_names() == ["binlog_format"]

    def test_overriding_system_value_is_drift(self, observed_group):
        desired = _desired(
            setting("character_set_server", "latin1"),
            setting("max_connections", "100"),
            setting("slow_query_log", "1"),
            setting("innodb_buffer_pool_size", "1073741824", reboot=True),
        )
        result = diff(desired, observed_group)
        assert [s.name for s in result.to_set] == ["innodb_buffer_pool_size"]

    def test_duplicate_desired_names_rejected(self, observed_group):
        desired = _desired(setting("max_connections", "100"), setting("Max_Connections", "200"))
        with pytest.raises(InvalidConfigurationError, match="max_connections"):
            diff(desired, observed_group)


class TestToReset:
    def test_removed_user_setting_is_reset(self, observed_group):
        desired = _desired(setting("character_set_server", "latin1"))
        result = diff(desired, observed_group)
        assert result.to_reset == ["max_connections", "slow_query_log"]

    def test_removed_system_and_default_settings_are_left_alone(self, observed_group):
        desired = _desired(
            setting("character_set_server", "latin1"),
            setting("max_connections", "100"),
            setting("slow_query_log", "1"),
        )
        result = diff(desired, observed_group)
        assert "innodb_buffer_pool_size" not in result.to_reset
        assert "binlog_format" not in result.to_reset

    def test_user_removed_and_system_removed_together(self):
        observed = ParameterSet(
            name="pg",
            settings=[
                setting("log_min_duration_statement", "500"),
                setting("rds.force_ssl", "1", source=SettingSource.SYSTEM),
            ],
        )
        result = diff(ParameterSet(name="pg"), observed)
        assert result.to_reset == ["log_min_duration_statement"]
        assert result.to_set == []

    def test_reset_uses_observed_spelling(self):
        observed = ParameterSet(name="g", settings=[setting("Max_Connections", "10")])
        assert diff(ParameterSet(name="g"), observed).to_reset == ["Max_Connections"]


class TestPlanDestroy:
    def test_delete_by_default(self):
        plan = plan_destroy(_desired())
        assert plan.delete_remote
        assert plan.resource_id == "app-mysql"

    def test_retained_group_is_not_deleted(self):
        plan = plan_destroy(_desired(retain_on_destroy=True))
        assert not plan.delete_remote

    def test_explicit_resource_id(self):
        assert plan_destroy(_desired(), "other-id").resource_id == "other-id"
