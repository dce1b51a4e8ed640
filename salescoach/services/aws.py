"""Shared AWS helpers for service clients."""

from __future__ import annotations

from typing import Any

import boto3

from salescoach.config.settings import settings


def create_boto3_client(
    service_name: str,
    *,
    region_name: str | None = None,
    aws_access_key_id: str | None = None,
    aws_secret_access_key: str | None = None,
) -> Any:
    """Instantiate a boto3 client, preferring explicit keys over configured ones."""

    client_kwargs: dict[str, Any] = {"region_name": region_name or settings.bedrock.region}
    access_key = aws_access_key_id or settings.bedrock.access_key
    secret_key = aws_secret_access_key or settings.bedrock.secret_key
    if access_key and secret_key:
        client_kwargs["aws_access_key_id"] = access_key
        client_kwargs["aws_secret_access_key"] = secret_key
    # Otherwise boto3 falls back to its default credential chain.
    return boto3.client(service_name, **client_kwargs)


__all__ = ["create_boto3_client"]
