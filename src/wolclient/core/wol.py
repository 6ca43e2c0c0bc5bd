"""Wake-on-LAN magic packet construction and dispatch."""

import logging
import re
from typing import Optional

from wakeonlan import create_magic_packet, send_magic_packet

from wolclient.errors import InvalidMacFormatError, InvalidPortError, NetworkSendError

logger = logging.getLogger(__name__)

BROADCAST_IP = "255.255.255.255"
DEFAULT_PORT = 9
MAC_SEPARATOR = ":"
PACKET_SIZE = 102

_MAC_RE = re.compile(r"^([0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2}$")


def parse_mac(mac: str) -> bytes:
    """
    Parse a MAC address like "AA:BB:CC:DD:EE:FF" into its six raw bytes.

    Raises:
        InvalidMacFormatError: If the string is not six ':'-separated hex pairs
    """
    if not isinstance(mac, str) or not _MAC_RE.match(mac):
        raise InvalidMacFormatError(mac)
    return bytes(int(group, 16) for group in mac.split(MAC_SEPARATOR))


def build_magic_packet(mac: str) -> bytes:
    """Return the 102-byte payload: 6 x 0xFF followed by the MAC repeated 16 times."""
    parse_mac(mac)
    return create_magic_packet(mac)


def resolve_destination(
    target_addr: Optional[str] = None, port: Optional[int] = None
) -> tuple[str, int]:
    """
    Resolve the host and port a packet should go to.

    A missing (or blank) target falls back to the limited broadcast address,
    a missing port to the conventional WOL port 9.
    """
    host = target_addr.strip() if target_addr else ""
    if not host:
        host = BROADCAST_IP
    if port is None:
        port = DEFAULT_PORT
    elif isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
        raise InvalidPortError(port)
    return host, port


def send(mac: str, target_addr: Optional[str] = None, port: Optional[int] = None) -> None:
    """
    Send a single Wake-on-LAN magic packet.

    The MAC is validated before any socket is opened. Exactly one UDP datagram
    is handed to the transport on a broadcast-enabled socket; there is no
    retry and no acknowledgement, so success only means the datagram was
    accepted for sending.

    Args:
        mac: MAC address of the target machine (e.g. "AA:BB:CC:DD:EE:FF")
        target_addr: Destination host/IP (default: 255.255.255.255)
        port: UDP port (default: 9)

    Raises:
        InvalidMacFormatError: If the MAC is malformed
        InvalidPortError: If the port is outside 0..65535
        NetworkSendError: If the socket could not be opened or the send failed
    """
    parse_mac(mac)
    host, resolved_port = resolve_destination(target_addr, port)
    destination = f"{host}:{resolved_port}"

    logger.info("Sending WOL magic packet to %s via %s", mac, destination)
    try:
        send_magic_packet(mac, ip_address=host, port=resolved_port)
    except (OSError, ValueError) as exc:
        # Host resolution failures surface as UnicodeError (a ValueError).
        raise NetworkSendError(mac, destination, exc) from exc
    logger.debug("WOL packet (%d bytes) sent to %s", PACKET_SIZE, destination)
