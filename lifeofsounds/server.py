"""TLS socket server that serves HTTP routes and relays WebSocket traffic."""

from __future__ import annotations

import argparse
import logging
import selectors
import socket
import ssl
from dataclasses import dataclass
from typing import Any

from .config import AppContext, default_context
from .connections import (
    create_client_connection,
    delete_connection_by_fd,
    get_client_connection_by_fd,
    insert_client_connection,
    update_client_connection_value,
)
from .frames import decode_websocket_buffer, encode_text_frame
from .httputil import get_header_value
from .routing import process_route

logger = logging.getLogger(__name__)

PORT = 9035
CERT_FILE = "../server/self_signed_cert.crt"
KEY_FILE = "../server/privateKey.key"
BUFFER_SIZE = 5056
_BACKLOG = 5
_RELAY_HEADER = 5
_SHORT_FRAME_LIMIT = 126


@dataclass
class Client:
    """A socket watched by the server; the listener is the one that is not new."""

    fd: int
    sock: Any
    is_new: bool


def get_peer_name(sock: Any) -> str:
    """Return the address of the peer of ``sock``, or an empty string."""
    try:
        address = sock.getpeername()
    except OSError:
        return ""
    if isinstance(address, tuple):
        return str(address[0])
    if isinstance(address, bytes):
        return address.decode("utf-8", errors="replace")
    return str(address)


def parse_request_line(request: str | bytes) -> tuple[str, str]:
    """Return the method and route of an HTTP request."""
    text = bytes(request).decode("latin-1") if isinstance(request, (bytes, bytearray)) else request
    method, sep, rest = text.partition(" ")
    if not sep or not method:
        raise ValueError("request has no method")
    route, sep, _ = rest.partition(" ")
    if not sep:
        raise ValueError("request has no route")
    return method, route


def encode_relay_frame(opcode: int, payload: bytes) -> bytes:
    """Return ``opcode``, a 4-byte big-endian length and ``payload``."""
    if not 0 <= opcode <= 0xFF:
        raise ValueError(f"opcode out of range: {opcode}")
    data = bytes(payload)
    if len(data) > 0xFFFFFFFF:
        raise ValueError("payload too large for a relay frame")
    return bytes([opcode]) + len(data).to_bytes(4, "big") + data


def decode_relay_frame(buf: bytes) -> tuple[int, bytes]:
    """Split a relay frame into its opcode and payload."""
    if len(buf) < _RELAY_HEADER:
        raise ValueError("relay frame is shorter than its header")
    length = int.from_bytes(buf[1:_RELAY_HEADER], "big")
    payload = bytes(buf[_RELAY_HEADER:_RELAY_HEADER + length])
    if len(payload) < length:
        raise ValueError("relay frame is shorter than its declared length")
    return buf[0], payload


class Server:
    """Accepts clients, routes their HTTP requests and relays their messages."""

    def __init__(
        self,
        context: AppContext,
        port: int = PORT,
        certfile: str | None = None,
        keyfile: str | None = None,
    ):
        self.context = context
        self.port = port
        self.clients: dict[int, Client] = {}
        self.listener_fd: int | None = None
        self._tls: ssl.SSLContext | None = None
        if certfile is not None:
            self._tls = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
            self._tls.load_cert_chain(certfile, keyfile)
        self._selector: selectors.BaseSelector | None = None

    def _secure(self, sock: socket.socket) -> Any:
        if self._tls is None:
            return sock
        try:
            return self._tls.wrap_socket(sock, server_side=True)
        except (ssl.SSLError, OSError) as exc:
            logger.warning("TLS handshake failed: %s", exc)
            return None

    def add_client(self, sock: socket.socket, client_type: str) -> Client | None:
        """Watch ``sock``; the first socket added is the listener.

        Every later socket is secured first and closed if that fails.
        """
        fd = sock.fileno()
        is_listener = not self.clients
        if is_listener:
            conn = sock
        else:
            conn = self._secure(sock)
            if conn is None:
                sock.close()
                return None
        client = Client(fd=fd, sock=conn, is_new=not is_listener)
        self.clients[fd] = client
        if is_listener:
            self.listener_fd = fd
        if self._selector is not None:
            self._selector.register(conn, selectors.EVENT_READ, client)
        record = create_client_connection(get_peer_name(conn), fd)
        record.client_type = client_type
        insert_client_connection(self.context.db, record)
        logger.info("total clients: %d | id: %d", len(self.clients), fd)
        return client

    def remove_client(self, fd: int) -> bool:
        """Close and forget the client on ``fd``; return False when unknown."""
        client = self.clients.pop(fd, None)
        if client is None:
            return False
        if self._selector is not None:
            try:
                self._selector.unregister(client.sock)
            except (KeyError, ValueError):
                pass
        client.sock.close()
        if fd == self.listener_fd:
            self.listener_fd = None
        delete_connection_by_fd(self.context.db, fd)
        logger.info("fd %d removed, total: %d", fd, len(self.clients))
        return True

    def get_client_socket(self, fd: int) -> Any:
        """Return the socket of the client on ``fd``, or None."""
        client = self.clients.get(fd)
        return client.sock if client is not None else None

    def broadcast(self, data: bytes, exclude_fd: int | None) -> int:
        """Send ``data`` to every client but the listener and ``exclude_fd``."""
        sent = 0
        for fd, client in list(self.clients.items()):
            if fd == self.listener_fd or fd == exclude_fd:
                continue
            try:
                client.sock.sendall(data)
            except OSError as exc:
                logger.warning("could not send to fd %d: %s", fd, exc)
                continue
            sent += 1
        return sent

    def handle_readable(self, client: Client) -> bool:
        """Serve one read from ``client``; return False when it was removed."""
        try:
            buf = client.sock.recv(BUFFER_SIZE)
        except OSError as exc:
            logger.warning("recv on fd %d failed: %s", client.fd, exc)
            buf = b""
        if not buf:
            logger.info("fd %d hung up", client.fd)
            self.remove_client(client.fd)
            return False
        if b"HTTP/1.1" in buf:
            return self._handle_http(client, buf)

        record = get_client_connection_by_fd(self.context.db, client.fd)
        if record is None:
            return True
        if record.client_type == "websocket":
            try:
                message = decode_websocket_buffer(buf)
            except ValueError as exc:
                logger.warning("bad WebSocket frame from fd %d: %s", client.fd, exc)
                return True
            self.broadcast(encode_relay_frame(buf[0] & 0x0F, message), client.fd)
        else:
            try:
                _, message = decode_relay_frame(buf)
            except ValueError as exc:
                logger.warning("bad relay frame from fd %d: %s", client.fd, exc)
                return True
            if len(message) < _SHORT_FRAME_LIMIT:
                self.broadcast(encode_text_frame(message), client.fd)
        return True

    def _handle_http(self, client: Client, buf: bytes) -> bool:
        try:
            method, route = parse_request_line(buf)
        except ValueError:
            self.remove_client(client.fd)
            return False
        process_route(client.sock, self.context, buf, method, route, client.fd)
        if not get_header_value(buf, "Sec-WebSocket-Key"):
            self.remove_client(client.fd)
            return False
        record = get_client_connection_by_fd(self.context.db, client.fd)
        if record is not None:
            logger.info("WebSocket client %s | %s is connected", record.ip_address, record.client_type)
            update_client_connection_value(self.context.db, record.id, "client_type", "websocket")
        return True

    def serve_forever(self) -> None:
        """Listen on the configured port and serve clients until interrupted."""
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        listener.bind(("", self.port))
        listener.listen(_BACKLOG)
        with selectors.DefaultSelector() as selector:
            self._selector = selector
            try:
                self.add_client(listener, "listener")
                print(f"https://127.0.0.1:{self.port}/life-of-sounds/login")
                while True:
                    for key, _ in selector.select():
                        client = key.data
                        if client.fd == self.listener_fd:
                            try:
                                new_sock, _ = listener.accept()
                            except OSError as exc:
                                logger.warning("accept failed: %s", exc)
                                continue
                            self.add_client(new_sock, "requested")
                        elif client.fd in self.clients:
                            self.handle_readable(client)
            finally:
                for fd in list(self.clients):
                    self.remove_client(fd)
                self._selector = None


def main(argv: list[str] | None = None) -> int:
    """Run the server from the command line."""
    parser = argparse.ArgumentParser(prog="lifeofsounds")
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--cert", default=CERT_FILE)
    parser.add_argument("--key", default=KEY_FILE)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    server = Server(default_context(), args.port, args.cert, args.key)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        return 0
    return 0