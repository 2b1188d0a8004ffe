"""Pytest fixtures: in-process broker, connections, scripted sockets."""

import socket
import sys
from pathlib import Path

import pytest

# Add project root to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from fakebroker import FakeBroker
from pystalk import Connection, connect


@pytest.fixture
def broker():
    """Start a fresh broker for each test."""
    broker = FakeBroker()
    broker.start()
    yield broker
    broker.stop()


@pytest.fixture
def producer(broker):
    conn = connect(broker.address)
    yield conn
    conn.close()


@pytest.fixture
def consumer(broker):
    conn = connect(broker.address)
    yield conn
    conn.close()


class ScriptedBroker:
    """The far end of a socketpair, with canned replies queued up front."""

    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock

    def reply(self, *chunks: bytes) -> None:
        for chunk in chunks:
            self.sock.sendall(chunk)

    def hang_up(self) -> None:
        self.sock.shutdown(socket.SHUT_WR)

    def received(self) -> bytes:
        """Everything the client has written so far."""
        data = b""
        self.sock.setblocking(False)
        try:
            while True:
                chunk = self.sock.recv(65536)
                if not chunk:
                    break
                data += chunk
        except BlockingIOError:
            pass
        finally:
            self.sock.setblocking(True)
        return data


@pytest.fixture
def scripted():
    """A Connection over a socketpair plus the scripted far end."""
    client_sock, broker_sock = socket.socketpair()
    conn = Connection(client_sock)
    yield conn, ScriptedBroker(broker_sock)
    conn.close()
    broker_sock.close()
