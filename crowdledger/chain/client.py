"""Stacks node client used as the block height oracle."""

from typing import Optional

import httpx

from crowdledger.config import Config
from crowdledger.log import get_logger

logger = get_logger(__name__)


class StacksClient:
    """Reads the chain tip from a Stacks node's ``/v2/info`` endpoint."""

    def __init__(self, config: Config, transport: Optional[httpx.BaseTransport] = None):
        """Initialize client.

        Args:
            config: Configuration object with the node URL
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.config = config
        self._client = httpx.Client(
            base_url=config.stacks_api_url,
            timeout=config.stacks_api_timeout_seconds,
            transport=transport,
        )

    def get_tip_height(self) -> int:
        """Get the current Stacks tip height.

        Returns:
            Block height

        Raises:
            ValueError: If the node response is unusable
        """
        try:
            response = self._client.get("/v2/info")
            response.raise_for_status()
            info = response.json()
        except httpx.HTTPError as e:
            raise ValueError(f"Failed to get chain info from {self.config.stacks_api_url}: {e}") from e

        height = info.get("stacks_tip_height")
        if not isinstance(height, int) or height < 0:
            raise ValueError(f"Invalid stacks_tip_height in node response: {height!r}")

        logger.debug(f"Stacks tip height: {height}")
        return height

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "StacksClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
