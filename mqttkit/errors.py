"""Error types raised while handling MQTT connections."""

from __future__ import annotations

from enum import Enum
from typing import Any


class MqttError(Exception):
    """Base class for errors that can occur while handling an MQTT connection."""


class ServiceError(MqttError):
    """Error raised by an application handler service."""

    def __init__(self, error: Any) -> None:
        super().__init__(f"Service error: {error!r}")
        self.error = error


class HandshakeTimeoutError(MqttError):
    """The handshake did not complete in time."""

    def __init__(self) -> None:
        super().__init__("Handshake timeout")


class DisconnectedError(MqttError):
    """The peer disconnected."""

    def __init__(self) -> None:
        super().__init__("Peer disconnected")


class ServerError(MqttError):
    """Internal server error with a static description."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ProtocolError(MqttError):
    """Protocol level error."""

    _default_message = "Protocol error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self._default_message)


class DecodeErrorKind(Enum):
    """Reasons a packet could not be decoded."""

    INVALID_PROTOCOL = "InvalidProtocol"
    INVALID_LENGTH = "InvalidLength"
    MALFORMED_PACKET = "MalformedPacket"
    UNSUPPORTED_PROTOCOL_LEVEL = "UnsupportedProtocolLevel"
    CONNECT_RESERVED_FLAG_SET = "ConnectReservedFlagSet"
    CONNACK_RESERVED_FLAG_SET = "ConnAckReservedFlagSet"
    INVALID_CLIENT_ID = "InvalidClientId"
    UNSUPPORTED_PACKET_TYPE = "UnsupportedPacketType"
    PACKET_ID_REQUIRED = "PacketIdRequired"
    MAX_SIZE_EXCEEDED = "MaxSizeExceeded"
    UTF8_ERROR = "Utf8Error"


class DecodeError(ProtocolError):
    """Packet decoding failed."""

    def __init__(self, kind: DecodeErrorKind, detail: Any = None) -> None:
        self.kind = kind
        self.detail = detail
        if detail is None:
            shown = kind.value
        else:
            shown = f"{kind.value}({detail})"
        super().__init__(f"Decode error: {shown}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DecodeError):
            return NotImplemented
        # UTF-8 errors carry arbitrary detail and never compare equal.
        if self.kind is DecodeErrorKind.UTF8_ERROR:
            return False
        return self.kind is other.kind

    def __hash__(self) -> int:
        return hash(self.kind)


class EncodeErrorKind(Enum):
    """Reasons a packet could not be encoded."""

    INVALID_LENGTH = "InvalidLength"
    MALFORMED_PACKET = "MalformedPacket"
    PACKET_ID_REQUIRED = "PacketIdRequired"
    UNSUPPORTED_VERSION = "UnsupportedVersion"


class EncodeError(ProtocolError):
    """Packet encoding failed."""

    def __init__(self, kind: EncodeErrorKind) -> None:
        self.kind = kind
        super().__init__(f"Encode error: {kind.value}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EncodeError):
            return NotImplemented
        return self.kind is other.kind

    def __hash__(self) -> int:
        return hash(self.kind)


class UnexpectedPacketError(ProtocolError):
    """A packet arrived that is not allowed at this point."""

    def __init__(self, packet_type: int, message: str) -> None:
        self.packet_type = packet_type
        self.message = message
        super().__init__(f"Unexpected packet {packet_type}, {message}")


class PacketIdMismatchError(ProtocolError):
    """Publish ack packet id does not match the sent publish packet."""

    _default_message = (
        "Packet id of publish ack packet does not match of send publish packet"
    )


class MaxTopicAliasError(ProtocolError):
    """Topic alias exceeds the negotiated maximum."""

    _default_message = "Topic alias is greater than max topic alias"


class ReceiveMaximumExceededError(ProtocolError):
    """Too many in-flight messages."""

    _default_message = "Number of in-flight messages exceeded"


class UnknownTopicAliasError(ProtocolError):
    """A topic alias was used before being defined."""

    _default_message = "Unknown topic alias"


class KeepAliveTimeoutError(ProtocolError):
    """The peer was silent for longer than the keep-alive period."""

    _default_message = "Keep alive timeout"


class ProtocolIoError(ProtocolError):
    """An unexpected I/O error on the connection."""

    def __init__(self, error: BaseException | str) -> None:
        self.error = error
        super().__init__(f"Unexpected io error: {error}")


class SendPacketError(Exception):
    """Base class for errors raised while sending a packet."""


class SendPacketEncodeError(SendPacketError):
    """The outgoing packet could not be encoded."""

    def __init__(self, error: EncodeError) -> None:
        self.error = error
        super().__init__(error.kind.value)


class PacketIdInUseError(SendPacketError):
    """The requested packet id is already in use."""

    def __init__(self, packet_id: int) -> None:
        self.packet_id = packet_id
        super().__init__("Provided packet id is in use")


class PeerDisconnectedError(SendPacketError):
    """The peer disconnected before the packet could be sent."""

    def __init__(self) -> None:
        super().__init__("Peer disconnected")