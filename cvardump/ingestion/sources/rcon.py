"""
Minimal Source engine RCON client used to run `cvarlist` on a live server.

Packet layout (all integers little-endian int32):
    size | id | type | body | 0x00 | 0x00
where size counts every byte after the size field itself.
"""
from __future__ import annotations

import logging
import socket
import struct
from dataclasses import dataclass
from typing import List, Optional, Tuple

from cvardump.constants import (
    RCON_AUTH_FAILED_ID,
    RCON_DEFAULT_COMMAND,
    RCON_DEFAULT_PORT,
    RCON_DEFAULT_TIMEOUT,
    RCON_MAX_BODY_SIZE,
    RCON_MIN_PACKET_SIZE,
    SERVERDATA_AUTH,
    SERVERDATA_AUTH_RESPONSE,
    SERVERDATA_EXECCOMMAND,
    SERVERDATA_RESPONSE_VALUE,
)

logger = logging.getLogger(__name__)

_SIZE = struct.Struct("<i")
_ID_TYPE = struct.Struct("<ii")
_TERMINATOR = b"\x00\x00"


class RconError(Exception):
    pass


class RconAuthError(RconError):
    pass


class RconProtocolError(RconError):
    pass


@dataclass
class RconPacket:
    id: int
    type: int
    body: bytes


def encode_packet(packet_id: int, packet_type: int, body: str | bytes = b"") -> bytes:
    if isinstance(body, str):
        body = body.encode("utf-8")
    payload = _ID_TYPE.pack(packet_id, packet_type) + body + _TERMINATOR
    return _SIZE.pack(len(payload)) + payload


def decode_packet(data: bytes) -> Tuple[Optional[RconPacket], bytes]:
    """Split one packet off the front of `data`.

    Returns (None, data) while the packet is still incomplete.
    """
    if len(data) < _SIZE.size:
        return None, data
    (size,) = _SIZE.unpack_from(data)
    if size < RCON_MIN_PACKET_SIZE or size > RCON_MIN_PACKET_SIZE + RCON_MAX_BODY_SIZE:
        raise RconProtocolError(f"Invalid RCON packet size: {size}")
    end = _SIZE.size + size
    if len(data) < end:
        return None, data
    packet_id, packet_type = _ID_TYPE.unpack_from(data, _SIZE.size)
    body = data[_SIZE.size + _ID_TYPE.size:end - len(_TERMINATOR)]
    return RconPacket(packet_id, packet_type, body), data[end:]


def parse_address(address: str) -> Tuple[str, int]:
    """Split `host[:port]` (IPv6 hosts in brackets), defaulting to port 27015."""
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
    elif address.count(":") == 1:
        host, _, port = address.partition(":")
    else:
        host, port = address, ""
    if not port:
        return host, RCON_DEFAULT_PORT
    try:
        return host, int(port)
    except ValueError:
        raise ValueError(f"Invalid port in server address: {address}") from None


class RconClient:
    def __init__(self, host: str, port: int = RCON_DEFAULT_PORT, timeout: float = RCON_DEFAULT_TIMEOUT):
        self.host = host
        self.port = port
        self.timeout = timeout
        self._sock: Optional[socket.socket] = None
        self._buffer = b""
        self._next_id = 1

    def __enter__(self) -> "RconClient":
        self.connect()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def connect(self) -> None:
        logger.info(f"Connecting to {self.host}:{self.port}")
        self._sock = socket.create_connection((self.host, self.port), timeout=self.timeout)

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None
        self._buffer = b""

    def _send(self, packet_type: int, body: str = "") -> int:
        if self._sock is None:
            raise RconError("Not connected")
        packet_id = self._next_id
        self._next_id += 1
        self._sock.sendall(encode_packet(packet_id, packet_type, body))
        return packet_id

    def _recv_packet(self) -> RconPacket:
        if self._sock is None:
            raise RconError("Not connected")
        while True:
            packet, self._buffer = decode_packet(self._buffer)
            if packet is not None:
                return packet
            chunk = self._sock.recv(4096)
            if not chunk:
                raise RconProtocolError("Connection closed by server")
            self._buffer += chunk

    def authenticate(self, password: str) -> None:
        auth_id = self._send(SERVERDATA_AUTH, password)
        while True:
            packet = self._recv_packet()
            # Servers send an empty RESPONSE_VALUE ahead of the auth result
            if packet.type == SERVERDATA_RESPONSE_VALUE:
                continue
            if packet.type != SERVERDATA_AUTH_RESPONSE:
                raise RconProtocolError(f"Unexpected packet type {packet.type} during authentication")
            if packet.id == RCON_AUTH_FAILED_ID:
                raise RconAuthError(f"RCON password rejected by {self.host}:{self.port}")
            if packet.id != auth_id:
                raise RconProtocolError(f"Auth response id {packet.id} does not match request id {auth_id}")
            logger.info("RCON authentication succeeded")
            return

    def command(self, command: str) -> str:
        """Run a console command and return its complete output.

        Long outputs are split across packets by the server. An empty
        RESPONSE_VALUE is sent after the command; the server mirrors it once
        every part of the command output has been sent.
        """
        cmd_id = self._send(SERVERDATA_EXECCOMMAND, command)
        end_id = self._send(SERVERDATA_RESPONSE_VALUE)
        chunks: List[bytes] = []
        while True:
            packet = self._recv_packet()
            if packet.id == end_id:
                break
            if packet.id == cmd_id and packet.type == SERVERDATA_RESPONSE_VALUE:
                chunks.append(packet.body)
            else:
                logger.debug(f"Ignoring RCON packet id={packet.id} type={packet.type}")
        # Join before decoding; multi-byte characters may straddle packets
        return b"".join(chunks).decode("utf-8", errors="replace")


def fetch_text(
    address: str,
    password: str,
    command: str = RCON_DEFAULT_COMMAND,
    timeout: float = RCON_DEFAULT_TIMEOUT,
) -> str:
    host, port = parse_address(address)
    with RconClient(host, port, timeout=timeout) as client:
        client.authenticate(password)
        text = client.command(command)
    logger.info(f"Received {len(text)} characters from `{command}`")
    return text
