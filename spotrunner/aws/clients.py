"""EC2 client factory and its DI module.

Components receive an ``EC2ClientFactory`` and open one client per call
sequence; they never build sessions themselves.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

import aioboto3
from injector import Module, provider, singleton

from .config import AWS


class EC2ClientFactory:
    """Calling it returns an async context manager yielding an EC2 client."""

    def __init__(self, factory: Callable[[], AbstractAsyncContextManager[Any]]) -> None:
        self._factory = factory

    def __call__(self) -> AbstractAsyncContextManager[Any]:
        return self._factory()


class AWSModule(Module):
    """Provides the ``EC2ClientFactory`` for the bound ``AWS`` config.

    Pass ``ec2`` to serve an existing factory (a fake, or a client shared
    with other code) instead of opening aioboto3 clients.
    """

    def __init__(self, ec2: EC2ClientFactory | None = None) -> None:
        self._ec2 = ec2

    @singleton
    @provider
    def provide_session(self) -> aioboto3.Session:
        return aioboto3.Session()

    @singleton
    @provider
    def provide_ec2(self, session: aioboto3.Session, config: AWS) -> EC2ClientFactory:
        if self._ec2 is not None:
            return self._ec2

        @asynccontextmanager
        async def factory() -> AsyncIterator[Any]:
            async with session.client("ec2", region_name=config.region) as client:
                yield client

        return EC2ClientFactory(factory)


__all__ = [
    "AWSModule",
    "EC2ClientFactory",
]
