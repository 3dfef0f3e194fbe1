"""Remote control plane client: the protocol the coordinator talks to, and its RDS version.

botocore error codes are normalized into ``rds_params.errors`` here; nothing
past this module sees a ``ClientError``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, ConnectTimeoutError, ReadTimeoutError

from rds_params.errors import (
    NotFoundError,
    RemoteError,
    SubmissionTimeoutError,
    TransientRemoteError,
    ValidationRemoteError,
)
from rds_params.models import ParameterSet
from rds_params.types import ApplyTiming, Setting, SettingSource

if TYPE_CHECKING:
    from rds_params.models import Chunk

logger = logging.getLogger("rds_params.client")

TRANSIENT_CODES = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "InvalidDBParameterGroupState",
        "InvalidDBParameterGroupStateFault",
    }
)
NOT_FOUND_CODES = frozenset({"DBParameterGroupNotFound", "DBParameterGroupNotFoundFault"})
ALREADY_EXISTS_CODES = frozenset(
    {"DBParameterGroupAlreadyExists", "DBParameterGroupAlreadyExistsFault"}
)

# botocore's own default for both connect and read timeouts.
DEFAULT_TIMEOUT = 60.0


@runtime_checkable
class ParameterGroupClient(Protocol):
    async def describe_settings(self, resource_id: str) -> ParameterSet: ...

    async def apply_settings(self, resource_id: str, chunk: Chunk) -> None: ...

    async def reset_settings(self, resource_id: str, chunk: Chunk) -> None: ...

    async def create_parameter_set(self, desired: ParameterSet) -> None: ...

    async def delete_parameter_set(self, resource_id: str) -> None: ...


def normalize_client_error(exc: ClientError) -> RemoteError:
    """Map a botocore ``ClientError`` onto the error taxonomy."""
    error = exc.response.get("Error", {})
    code = error.get("Code", "Unknown")
    message = error.get("Message", str(exc))
    if code in TRANSIENT_CODES:
        return TransientRemoteError(message, code=code)
    if code in NOT_FOUND_CODES:
        return NotFoundError(message, code=code)
    return ValidationRemoteError(message, code=code)


class RDSParameterGroupClient:
    """``ParameterGroupClient`` backed by the boto3 ``rds`` client.

    boto3 is blocking, so each call runs in a worker thread. SDK-level retries
    are kept low because the coordinator owns the retry policy. The socket
    timeouts bound each call so a worker thread never outlives its submission
    by more than ``timeout`` seconds.
    """

    def __init__(
        self,
        region: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: Any | None = None,
    ) -> None:
        if client is None:
            config = Config(
                region_name=region,
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"max_attempts": 1, "mode": "standard"},
            )
            client = boto3.client("rds", config=config)
        self._client = client
        self._timeout = timeout

    async def describe_settings(self, resource_id: str) -> ParameterSet:
        return await asyncio.to_thread(self._describe, resource_id)

    async def apply_settings(self, resource_id: str, chunk: Chunk) -> None:
        await self._call(
            "modify_db_parameter_group",
            DBParameterGroupName=resource_id,
            Parameters=[
                {
                    "ParameterName": s.name,
                    "ParameterValue": s.value,
                    "ApplyMethod": s.apply_timing.value,
                }
                for s in chunk.settings
            ],
        )

    async def reset_settings(self, resource_id: str, chunk: Chunk) -> None:
        await self._call(
            "reset_db_parameter_group",
            DBParameterGroupName=resource_id,
            ResetAllParameters=False,
            Parameters=[
                {"ParameterName": s.name, "ApplyMethod": s.apply_timing.value}
                for s in chunk.settings
            ],
        )

    async def create_parameter_set(self, desired: ParameterSet) -> None:
        if not desired.family:
            raise ValidationRemoteError(
                f"Parameter group '{desired.name}' needs a family to be created",
                code="MissingFamily",
            )
        try:
            await self._call(
                "create_db_parameter_group",
                DBParameterGroupName=desired.name,
                DBParameterGroupFamily=desired.family,
                Description=desired.description,
            )
        except ValidationRemoteError as e:
            if e.code not in ALREADY_EXISTS_CODES:
                raise
            logger.info("Parameter group %s already exists", desired.name)

    async def delete_parameter_set(self, resource_id: str) -> None:
        await self._call("delete_db_parameter_group", DBParameterGroupName=resource_id)

    async def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        return await asyncio.to_thread(self._invoke, operation, kwargs)

    def _invoke(self, operation: str, kwargs: dict[str, Any]) -> dict[str, Any]:
        try:
            return getattr(self._client, operation)(**kwargs)
        except ClientError as e:
            raise normalize_client_error(e) from e
        except (ConnectTimeoutError, ReadTimeoutError) as e:
            raise SubmissionTimeoutError(self._timeout) from e

    def _describe(self, resource_id: str) -> ParameterSet:
        try:
            groups = self._client.describe_db_parameter_groups(DBParameterGroupName=resource_id)
            paginator = self._client.get_paginator("describe_db_parameters")
            settings: list[Setting] = []
            for page in paginator.paginate(DBParameterGroupName=resource_id):
                for p in page.get("Parameters", []):
                    setting = _setting_from_api(p)
                    if setting is not None:
                        settings.append(setting)
        except ClientError as e:
            raise normalize_client_error(e) from e
        except (ConnectTimeoutError, ReadTimeoutError) as e:
            raise SubmissionTimeoutError(self._timeout) from e

        group = groups["DBParameterGroups"][0] if groups.get("DBParameterGroups") else {}
        return ParameterSet(
            name=resource_id,
            family=group.get("DBParameterGroupFamily"),
            description=group.get("Description", ""),
            settings=settings,
        )


def _setting_from_api(p: dict[str, Any]) -> Setting | None:
    """Convert a DescribeDBParameters entry; entries with no value carry nothing to compare."""
    value = p.get("ParameterValue")
    if value is None:
        return None
    try:
        source = SettingSource(p.get("Source", "engine-default"))
    except ValueError:
        source = SettingSource.SYSTEM
    try:
        timing = ApplyTiming(p.get("ApplyMethod", "immediate"))
    except ValueError:
        timing = ApplyTiming.IMMEDIATE
    return Setting(name=p["ParameterName"], value=value, apply_timing=timing, source=source)
