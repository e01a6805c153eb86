import logging
from typing import Optional

import httpx

from .config import BaseAppConfig

logger = logging.getLogger(__name__)


class HttpClientFactory:
    """
    HTTP Client Factory for the runtime endpoint connection.
    """

    def __init__(self, config: BaseAppConfig):
        self.config = config

    def create_async_client(
        self, connect_timeout: float = 5.0, read_timeout: Optional[float] = None, **kwargs
    ) -> httpx.AsyncClient:
        """
        Create an httpx.AsyncClient with configured SSL verification.

        The read timeout defaults to None because the next-invocation request
        blocks until the platform has an event.

        Args:
            connect_timeout: Seconds allowed for establishing the connection
            read_timeout: Seconds allowed between response bytes (None = unbounded)
            **kwargs: Additional arguments for httpx.AsyncClient
        """
        verify = kwargs.pop("verify", None)

        # If verify is not explicitly provided, use config default
        if verify is None:
            verify = self.config.VERIFY_SSL

        if "timeout" not in kwargs:
            kwargs["timeout"] = httpx.Timeout(
                connect=connect_timeout, read=read_timeout, write=connect_timeout, pool=None
            )
        # One invocation at a time, so one keep-alive connection is enough.
        if "limits" not in kwargs:
            kwargs["limits"] = httpx.Limits(max_keepalive_connections=1, max_connections=2)
        # The runtime endpoint is platform-local; never route it through HTTP(S)_PROXY.
        kwargs.setdefault("trust_env", False)

        logger.debug("Creating runtime API client (verify=%s)", verify)
        return httpx.AsyncClient(verify=verify, **kwargs)
