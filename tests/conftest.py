"""Pytest configuration and fixtures for the rds-params tests."""

import pytest

from rds_params.models import ParameterSet
from rds_params.retry import RetryPolicy
from rds_params.types import SettingSource
from tests.fakes import FakeParameterGroupClient, setting


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def retry_policy() -> RetryPolicy:
    """Zero-delay policy so retry tests stay fast and deterministic."""
    return RetryPolicy.immediate(max_attempts=3)


@pytest.fixture
def observed_group() -> ParameterSet:
    """A MySQL parameter group as DescribeDBParameters would report it."""
    return ParameterSet(
        name="app-mysql",
        family="mysql8.0",
        settings=[
            setting("character_set_server", "latin1"),
            setting("max_connections", "100"),
            setting("slow_query_log", "1"),
            setting(
                "innodb_buffer_pool_size",
                "{DBInstanceClassMemory*3/4}",
                source=SettingSource.SYSTEM,
            ),
            setting("binlog_format", "ROW", source=SettingSource.ENGINE_DEFAULT),
        ],
    )


@pytest.fixture
def fake_client(observed_group: ParameterSet) -> FakeParameterGroupClient:
    return FakeParameterGroupClient([observed_group])
