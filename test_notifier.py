#!/usr/bin/env python3
"""
WhatsApp notifier: Graph API payloads and best-effort failure handling.
"""
import asyncio
import json

import httpx

from services.notifier import WhatsAppNotifier

URL = "https://graph.facebook.com/v20.0/1234567890/messages"


def run_with_notifier(handler, action):
    requests = []

    def recording_handler(request):
        requests.append(request)
        return handler(request)

    async def _run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        notifier = WhatsAppNotifier(token="wa-token", phone_number_id="1234567890", client=client)
        try:
            return await action(notifier)
        finally:
            await notifier.aclose()

    return asyncio.run(_run()), requests


def test_send_text_payload():
    ok, requests = run_with_notifier(
        lambda request: httpx.Response(200, json={"messages": [{"id": "wamid.1"}]}),
        lambda notifier: notifier.send_text("+233247877745", "Unauthorized user."),
    )

    assert ok is True
    assert len(requests) == 1
    assert str(requests[0].url) == URL
    assert requests[0].headers["Authorization"] == "Bearer wa-token"
    assert json.loads(requests[0].content) == {
        "messaging_product": "whatsapp",
        "to": "233247877745",
        "type": "text",
        "text": {"body": "Unauthorized user."},
    }


def test_send_location_request_payload():
    ok, requests = run_with_notifier(
        lambda request: httpx.Response(200, json={}),
        lambda notifier: notifier.send_location_request("+233247877745", "Please share your location to confirm clock in."),
    )

    body = json.loads(requests[0].content)
    assert ok is True
    assert body["type"] == "interactive"
    assert body["interactive"]["type"] == "location_request_message"
    assert body["interactive"]["action"] == {"name": "send_location"}
    assert body["interactive"]["body"]["text"] == "Please share your location to confirm clock in."


def test_location_request_falls_back_to_text():
    def handler(request):
        if json.loads(request.content)["type"] == "interactive":
            return httpx.Response(400, json={"error": {"message": "unsupported"}})
        return httpx.Response(200, json={})

    ok, requests = run_with_notifier(
        handler,
        lambda notifier: notifier.send_location_request("+233247877745", "Share location"),
    )

    assert ok is True
    assert [json.loads(r.content)["type"] for r in requests] == ["interactive", "text"]


def test_http_error_is_logged_not_raised():
    ok, _ = run_with_notifier(
        lambda request: httpx.Response(500, text="oops"),
        lambda notifier: notifier.send_text("+233247877745", "hi"),
    )
    assert ok is False


def test_transport_error_is_logged_not_raised():
    def handler(request):
        raise httpx.ConnectError("network down", request=request)

    ok, requests = run_with_notifier(
        handler,
        lambda notifier: notifier.send_location_request("+233247877745", "Share location"),
    )
    assert ok is False
    assert len(requests) == 2
