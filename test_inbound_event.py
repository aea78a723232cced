#!/usr/bin/env python3
"""
Webhook payload parsing into normalized inbound events.
"""
from models.inbound_event import EventKind, InboundEvent, WebhookPayload
from utils.phone import normalize_phone, to_whatsapp_id


def test_normalize_phone():
    assert normalize_phone("233247877745") == "+233247877745"
    assert normalize_phone("+233 24-787-7745") == "+233247877745"
    assert normalize_phone("") == ""
    assert to_whatsapp_id("+233247877745") == "233247877745"


def test_payload_flattens_messages_in_order():
    payload = WebhookPayload.model_validate({
        "object": "whatsapp_business_account",
        "entry": [
            {"changes": [{"value": {"messages": [{"from": "1", "type": "text", "text": {"body": "a"}}]}}]},
            {"changes": [
                {"value": {"statuses": [{"id": "s"}]}},
                {"value": {"messages": [{"from": "2", "type": "text", "text": {"body": "b"}}]}},
            ]},
        ],
    })

    assert [m.text.body for m in payload.messages()] == ["a", "b"]


def test_text_and_location_events():
    payload = WebhookPayload.model_validate({
        "object": "whatsapp_business_account",
        "entry": [{"changes": [{"value": {"messages": [
            {"from": "233247877745", "id": "wamid.1", "type": "text", "text": {"body": "clock in"}},
            {"from": "233247877745", "id": "wamid.2", "type": "location",
             "location": {"latitude": 9.4295, "longitude": -1.053, "name": "Office"}},
            {"from": "233247877745", "id": "wamid.3", "type": "image", "image": {"id": "img"}},
        ]}}]}],
    })
    text, location, image = [InboundEvent.from_message(m) for m in payload.messages()]

    assert text.kind == EventKind.TEXT
    assert text.sender == "+233247877745"
    assert text.text == "clock in"
    assert location.kind == EventKind.LOCATION
    assert (location.latitude, location.longitude) == (9.4295, -1.053)
    assert image.kind == EventKind.OTHER
    assert image.message_id == "wamid.3"
