"""
Wind Farm Monitor - Command Transport

Publishes command payloads to turbines. The broker itself lives outside this
service; we reach it over HTTP through a small publish bridge.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

import httpx

from windfarm.app import config
from windfarm.app.errors import TransportError

logger = logging.getLogger(__name__)


def command_topic(turbine_id: str, farm_id: str = config.FARM_ID) -> str:
    return f"farm/{farm_id}/windmill/{turbine_id}/command"


class CommandPublisher(ABC):
    """Delivers a command payload to a topic. Raises TransportError on failure."""

    @abstractmethod
    async def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        ...


class HttpCommandPublisher(CommandPublisher):
    def __init__(self, base_url: str = config.COMMAND_BRIDGE_URL,
                 timeout: float = config.COMMAND_BRIDGE_TIMEOUT, client: httpx.AsyncClient = None):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        try:
            r = await self.client.post(f"{self.base_url}/publish", json={"topic": topic, "payload": payload})
            r.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Publish to %s failed: %s", topic, e)
            raise TransportError(f"publish to {topic} failed: {e}") from e
        logger.info("Published %s to %s", payload.get("action"), topic)

    async def aclose(self):
        await self.client.aclose()
