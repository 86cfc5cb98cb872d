import pytest

from mqttkit.errors import (
    DecodeError,
    DecodeErrorKind,
    DisconnectedError,
    EncodeError,
    EncodeErrorKind,
    HandshakeTimeoutError,
    KeepAliveTimeoutError,
    MaxTopicAliasError,
    MqttError,
    PacketIdInUseError,
    PacketIdMismatchError,
    PeerDisconnectedError,
    ProtocolError,
    ProtocolIoError,
    ReceiveMaximumExceededError,
    SendPacketEncodeError,
    SendPacketError,
    ServerError,
    ServiceError,
    UnexpectedPacketError,
    UnknownTopicAliasError,
)


def test_decode_error_equal_by_kind():
    assert DecodeError(DecodeErrorKind.INVALID_LENGTH) == DecodeError(
        DecodeErrorKind.INVALID_LENGTH
    )
    assert DecodeError(DecodeErrorKind.INVALID_LENGTH) != DecodeError(
        DecodeErrorKind.MALFORMED_PACKET
    )


def test_decode_utf8_error_never_equal():
    err = DecodeError(DecodeErrorKind.UTF8_ERROR, "bad byte")
    assert not (err == err)
    assert err != DecodeError(DecodeErrorKind.UTF8_ERROR, "bad byte")


def test_decode_error_message():
    assert str(DecodeError(DecodeErrorKind.INVALID_LENGTH)) == "Decode error: InvalidLength"
    assert "bad byte" in str(DecodeError(DecodeErrorKind.UTF8_ERROR, "bad byte"))


def test_encode_error_equality_and_message():
    err = EncodeError(EncodeErrorKind.MALFORMED_PACKET)
    assert err == EncodeError(EncodeErrorKind.MALFORMED_PACKET)
    assert err != EncodeError(EncodeErrorKind.INVALID_LENGTH)
    assert str(err) == "Encode error: MalformedPacket"
    assert hash(err) == hash(EncodeError(EncodeErrorKind.MALFORMED_PACKET))


def test_protocol_errors_are_mqtt_errors():
    err = DecodeError(DecodeErrorKind.INVALID_PROTOCOL)
    assert err.kind is DecodeErrorKind.INVALID_PROTOCOL
    assert str(err) == "Decode error: InvalidProtocol"
    assert isinstance(err, ProtocolError)
    assert isinstance(err, MqttError)


@pytest.mark.parametrize(
    "cls, message",
    [
        (
            PacketIdMismatchError,
            "Packet id of publish ack packet does not match of send publish packet",
        ),
        (MaxTopicAliasError, "Topic alias is greater than max topic alias"),
        (ReceiveMaximumExceededError, "Number of in-flight messages exceeded"),
        (UnknownTopicAliasError, "Unknown topic alias"),
        (KeepAliveTimeoutError, "Keep alive timeout"),
    ],
)
def test_fixed_protocol_messages(cls, message):
    assert str(cls()) == message


def test_unexpected_packet():
    err = UnexpectedPacketError(8, "Subscribe packet is not supported")
    assert err.packet_type == 8
    assert str(err) == "Unexpected packet 8, Subscribe packet is not supported"


def test_io_error():
    inner = OSError("boom")
    err = ProtocolIoError(inner)
    assert err.error is inner
    assert str(err) == "Unexpected io error: boom"


def test_service_and_server_errors():
    payload = object()
    assert ServiceError(payload).error is payload
    assert ServerError("Duplicated packet id for publish packet").message == (
        "Duplicated packet id for publish packet"
    )
    assert str(DisconnectedError()) == "Peer disconnected"
    assert isinstance(HandshakeTimeoutError(), MqttError)


def test_send_packet_errors():
    enc = SendPacketEncodeError(EncodeError(EncodeErrorKind.INVALID_LENGTH))
    assert enc.error == EncodeError(EncodeErrorKind.INVALID_LENGTH)
    assert str(enc) == "InvalidLength"
    in_use = PacketIdInUseError(5)
    assert in_use.packet_id == 5
    assert str(in_use) == "Provided packet id is in use"
    with pytest.raises(SendPacketError):
        raise PeerDisconnectedError()
    assert not isinstance(PeerDisconnectedError(), MqttError)