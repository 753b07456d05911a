"""DynamoDB configuration and connection management."""

from functools import lru_cache
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from discipleship.config import settings

logger = structlog.get_logger()


@lru_cache
def get_dynamodb_resource() -> Any:
    """DynamoDB resource with optional endpoint override for DynamoDB Local."""
    return boto3.resource(
        "dynamodb",
        region_name=settings.aws_region,
        endpoint_url=settings.dynamodb_endpoint,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
    )


def get_table() -> Any:
    """Dependency returning the application table."""
    return get_dynamodb_resource().Table(settings.table_name)


async def check_database_connection(table: Any | None = None) -> bool:
    """Check that the application table is reachable."""
    table = table if table is not None else get_table()
    try:
        await run_in_threadpool(table.load)
        return True
    except (BotoCoreError, ClientError) as e:
        logger.warning("database_check_failed", table=settings.table_name, error=str(e))
        return False
