# mqttkit

Asyncio building blocks for MQTT clients and servers. It has no third-party
dependencies.

## Modules

- `mqttkit.topic`: topic names and filters. `Topic.parse` splits a string into
  `Level` values (normal, `$`-prefixed metadata, blank, `+` and `#`) and raises
  `InvalidLevelError` or `InvalidTopicError` when a wildcard or a metadata level
  is misplaced. `Topic.matches` and `Topic.matches_str` test whether a filter
  matches a topic; wildcards never match a `$` level. `write_level` and
  `write_topic` write to a binary stream and return the number of bytes written.
- `mqttkit.wire`: field codecs. `ByteReader` is a read cursor over bytes;
  `decode_bool`, `decode_u16`, `decode_u32`, `decode_nonzero_u16`,
  `decode_nonzero_u32`, `decode_bytes` and `decode_string` read fields, and
  `encode_bool`, `encode_u16`, `encode_u32`, `encode_bytes`, `encode_string`
  and `encode_string_pair` write them. `write_variable_length`,
  `read_variable_length` and `decode_variable_length` handle the variable byte
  integer (up to 268,435,455); `take_properties` and `read_single_property`
  help with property blocks. `select` awaits whichever of two awaitables
  finishes first and cancels the other.
- `mqttkit.errors`: the exception hierarchy. `MqttError` has the subclasses
  `ServiceError`, `HandshakeTimeoutError`, `DisconnectedError`, `ServerError`
  and `ProtocolError`. `ProtocolError` in turn covers `DecodeError` and
  `EncodeError` (each with a kind enum), `UnexpectedPacketError`,
  `PacketIdMismatchError`, `MaxTopicAliasError`,
  `ReceiveMaximumExceededError`, `UnknownTopicAliasError`,
  `KeepAliveTimeoutError` and `ProtocolIoError`. `SendPacketError` is separate,
  with `SendPacketEncodeError`, `PacketIdInUseError` and
  `PeerDisconnectedError`. Two `DecodeError`s compare equal when their kinds
  match, except UTF-8 errors, which never compare equal.
- `mqttkit.session`: `Session` holds the user state, the sink and the
  negotiated limits, which `params()` returns as `(max_receive,
  max_topic_alias)`. Unknown attributes are looked up on the state.
- `mqttkit.ordering`: `ResponseQueue`. It releases responses in request order
  even when they complete out of order.
- `mqttkit.dispatcher`: `Dispatcher`. It reads frames from an asyncio stream
  through a codec and calls a service for each `DispatchItem`. Replies are
  written in arrival order. It also enforces a keep-alive timeout (30 s by
  default, 0 disables it) and a disconnect timeout (1 s by default). Keep-alive
  expiry, encoder and I/O errors are handed to the service as items of their
  own kind. An exception from the service stops the connection and is raised
  again by `run()`.
- `mqttkit.framed`: `FramedService`. It runs a `connect` handshake that returns
  a `Handshake`, builds a handler from the session, and then drives a
  `Dispatcher`. `serve()` takes an optional handshake timeout; when that
  timeout expires, the connection is closed quietly.

## Examples

Topic filters:

```python
from mqttkit.topic import Topic

subscription = Topic.parse("sport/tennis/#")
assert subscription.matches_str("sport/tennis/player1/ranking")
assert not Topic.parse("#").matches_str("$SYS/uptime")
```

Variable byte integers:

```python
from mqttkit.wire import decode_variable_length, write_variable_length

assert write_variable_length(129) == b"\x81\x01"
assert decode_variable_length(b"\xff\x7f") == (16383, 2)
assert decode_variable_length(b"\xff\xff\xff") is None  # needs more data
```

Ordered responses:

```python
from mqttkit.ordering import ResponseQueue

queue = ResponseQueue()
first, second = queue.reserve(), queue.reserve()
assert queue.complete(second, "b") == []
assert queue.complete(first, "a") == ["a", "b"]
```

A line echo server on top of `Dispatcher`. A codec's `decode` takes a frame
out of the buffer, or returns None when more data is needed. Its `encode`
returns bytes.

```python
import asyncio
from mqttkit.dispatcher import Dispatcher, DispatchKind

class LineCodec:
    def decode(self, buffer):
        end = buffer.find(b"\n")
        if end < 0:
            return None
        line = bytes(buffer[:end])
        del buffer[: end + 1]
        return line

    def encode(self, item):
        return item + b"\n"

async def echo(item):
    return item.value if item.kind is DispatchKind.ITEM else None

async def handle(reader, writer):
    await Dispatcher(reader, writer, LineCodec(), echo, keepalive_timeout=60).run()

async def main():
    server = await asyncio.start_server(handle, "127.0.0.1", 1883)
    async with server:
        await server.serve_forever()
```

## What it does not do

mqttkit provides the pieces, not a finished broker or client. It has no codec
for MQTT control packets (CONNECT, PUBLISH, SUBSCRIBE and so on), no MQTT v3 or
v5 protocol handling, no client connector, no command-line program and no
persistent storage. You supply the packet codec, the handshake and the handlers
to `Dispatcher` or `FramedService`.

## Running the tests

```
pip install "mqttkit[test]"
pytest
```