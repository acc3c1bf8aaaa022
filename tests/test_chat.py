import asyncio

import pytest

from studio_site.services.chat import ChatHub


def test_messages_are_broadcast_to_every_client(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        assert alice.receive_json() == {"type": "system", "text": "connected", "clients": 1}
        assert bob.receive_json() == {"type": "system", "text": "connected", "clients": 2}

        alice.send_json({"author": "Alice", "text": "Ciao!"})

        for ws in (alice, bob):
            message = ws.receive_json()
            assert message["type"] == "message"
            assert message["author"] == "Alice"
            assert message["text"] == "Ciao!"
            assert "sentAt" in message


def test_invalid_message_only_answers_sender(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        alice.receive_json()
        bob.receive_json()

        alice.send_text("not json")
        assert alice.receive_json() == {"type": "error", "error": "Messaggio non valido"}

        bob.send_json({"author": "Bob", "text": "ci sei?"})
        # Bob's broadcast is the next thing both sides see
        assert alice.receive_json()["author"] == "Bob"
        assert bob.receive_json()["author"] == "Bob"


class _ClosedSocket:
    async def accept(self):
        pass

    async def send_json(self, message):
        raise RuntimeError("socket closed")


def test_client_is_not_registered_when_greeting_fails():
    hub = ChatHub()
    with pytest.raises(RuntimeError):
        asyncio.run(hub.connect(_ClosedSocket()))
    assert hub.client_count == 0
