"""
Tests for the HTTP command publisher.
"""

import json

import httpx
import pytest

from windfarm.app.errors import TransportError
from windfarm.app.services.transport import CommandPublisher, HttpCommandPublisher


def make_publisher(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpCommandPublisher(base_url="http://bridge/", client=client)


@pytest.mark.asyncio
async def test_publish_posts_topic_and_payload():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(202)

    publisher = make_publisher(handler)
    await publisher.publish("farm/farm-01/windmill/wt-01/command", {"action": "start"})
    await publisher.aclose()

    [req] = requests
    assert str(req.url) == "http://bridge/publish"
    assert json.loads(req.content) == {
        "topic": "farm/farm-01/windmill/wt-01/command",
        "payload": {"action": "start"},
    }


@pytest.mark.asyncio
async def test_http_error_becomes_transport_error():
    publisher = make_publisher(lambda request: httpx.Response(503))

    with pytest.raises(TransportError):
        await publisher.publish("farm/farm-01/windmill/wt-01/command", {"action": "stop", "reason": "operator"})
    await publisher.aclose()


@pytest.mark.asyncio
async def test_connection_error_becomes_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    publisher = make_publisher(handler)
    with pytest.raises(TransportError):
        await publisher.publish("farm/farm-01/windmill/wt-01/command", {"action": "start"})
    await publisher.aclose()


def test_publisher_contract_is_abstract():
    with pytest.raises(TypeError):
        CommandPublisher()
