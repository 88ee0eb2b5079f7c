# websock

websock is a WebSocket (RFC 6455) toolkit. It depends only on the standard library.

## What it contains

- **`websock.frameheader`** reads and writes frame headers through `read_header` and `write_header`. It also provides `DataFrameFlags` and `DataFrameHeader`.
- **`websock.mask`** has three parts:
  - `mask_data(mask, data)` applies a four-byte key with XOR.
  - `Masker` is a writer that masks everything written to it.
  - `gen_mask()` makes a random key.
- **`websock.dataframe`** provides the following:
  - `Opcode`, with `opcode_from(op)` to look one up.
  - The abstract `DataFrameLike`, which supplies `frame_size` and `write_to`.
  - `DataFrame`, which reads a frame from any binary reader with `read_dataframe` or `read_dataframe_with_limit`.
- **`websock.message`** covers building and receiving messages:
  - `Message` builds messages to send, using `Message.text`, `binary`, `ping`, `pong`, `close` and `close_because`.
  - The variants of `OwnedMessage` represent received messages: `TextMessage`, `BinaryMessage`, `CloseMessage` (with an optional `CloseData`), `PingMessage` and `PongMessage`.
  - Both kinds support `serialize`, `message_size` and `from_dataframes`.
  - `Message.to_owned()` and `OwnedMessage.to_message()` convert between the two kinds.
- **`websock.handshake`** handles the `Sec-WebSocket-Key` and `Sec-WebSocket-Accept` values through `WebSocketKey` and `WebSocketAccept`.
- **`websock.codec`** provides `DataFrameCodec` and `MessageCodec`:
  - Both decode incrementally from a `bytearray` and encode into one.
  - Outgoing data is masked when the `Context` is `CLIENT`.
  - Limits apply to the size of a frame, the size of a message and the number of frames in a message. The defaults are 100 MiB, 200 MiB and 1 Mi frames.
- **`websock.transport`** has two abstract base classes, `Sender` and `Receiver`:
  - Implement `is_masked` to get a `Sender`.
  - Implement `recv_dataframe` and `recv_message_dataframes` to get a `Receiver`.
  - You then get `send_dataframe`, `send_message`, `recv_message`, `incoming_dataframes` and `incoming_messages`.
- **`websock.stream`** provides `ReadWritePair`, which combines a separate reader and writer into one duplex stream.
- **`websock.upgrade`** handles the HTTP side of the handshake:
  - `parse_request` reads an HTTP request head.
  - `validate` checks that a request is a WebSocket upgrade. If it is not, it raises `UpgradeError`, whose `kind` is an `UpgradeErrorKind`.
  - `into_ws` does both on a stream and returns a `WsUpgrade`.
  - The `WsUpgrade` exposes the client's `protocols()`, `extensions()`, `key()`, `version()`, `uri()` and `origin()`.
  - It lets you choose response values with `use_protocol`, `use_extension` and `use_extensions`.
  - It can fill in the accepting response headers with `prepare_headers`, which returns `HTTPStatus.SWITCHING_PROTOCOLS`.
  - It can send a `400 Bad Request` with `reject` or `reject_with`.
- **`websock.server`** provides `Server`, a blocking TCP listener:
  - Bind it with `bind`, or with `bind_secure` to add TLS through an `ssl.SSLContext`.
  - Each `accept()` reads a handshake and returns a `WsUpgrade`. If the connection cannot be taken or is not a valid upgrade, it raises `InvalidConnection`.
  - Iterating over the server accepts connections one after another.
  - `set_nonblocking`, `try_clone`, `local_addr` and `close` are also available, and the server works as a context manager.

## Installing

```
pip install .
```

## Examples

Encode a message as a client and decode it as a server:

```python
from websock.codec import Context, MessageCodec
from websock.message import Message, TextMessage

wire = bytearray()
MessageCodec(Context.CLIENT).encode(Message.text("hello"), wire)  # masked

received = MessageCodec(Context.SERVER).decode(wire)
assert received == TextMessage("hello")
assert wire == bytearray()  # the decoded frame was taken off the buffer
```

Read a single frame from a stream:

```python
import io
from websock.dataframe import DataFrame, Opcode

frame = DataFrame.read_dataframe(io.BytesIO(b"\x81\x02hi"), False)
assert frame.kind is Opcode.TEXT and frame.data == b"hi"
```

Compute the accept value for a client's key:

```python
from websock.handshake import WebSocketAccept, WebSocketKey

key = WebSocketKey.parse("dGhlIHNhbXBsZSBub25jZQ==")
print(WebSocketAccept.from_key(key).serialize())
# s3pPLMBiTxaQ9kYGzzhZRbK+xOo=
```

Accept upgrade requests on a blocking server:

```python
from websock.server import InvalidConnection, Server

with Server.bind(("127.0.0.1", 8080)) as server:
    try:
        upgrade = server.accept()
    except InvalidConnection as exc:
        print("not a websocket request:", exc.error.kind)
    else:
        print("client asked for", upgrade.uri(), upgrade.protocols())
        upgrade.reject()
```

## What it does not do

- **No accepting response or session.** The package checks and answers handshakes, but it does not finish them into a session:
  - `WsUpgrade` can prepare the accepting headers, but it has no method that sends the `101 Switching Protocols` response.
  - No client object exists to exchange messages over an accepted connection.
  - To finish accepting, write the status line and `upgrade.headers` to `upgrade.stream` yourself. Then exchange frames with the codecs or with your own `Sender`/`Receiver`.
- **No client side.** There is no connecting client and no client handshake.
- **No async support.** There is no asyncio server; everything here is blocking or buffer-based.
- **No command-line program.**

## Running the tests

```
pip install .[test]
pytest
```