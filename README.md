# smarthome

Building blocks for a smart-home client and server that talk over HTTP and
WebSocket. The package is a library: it has no command-line entry point.

## Install

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Shared pieces

- `smarthome.packets`: the wire format.
  - `text_packet(packet_type, params, token)` returns compact JSON
    `{"params": {..., "token": token}, "type": packet_type}`.
  - `binary_packet(packet_type, params, data, *, token=None, with_size=True)`
    builds one packet: a big-endian signed 32-bit header length, the JSON
    header, then the raw data. With `with_size` the header records
    `len(data)` under `"size"`.
  - `length_prefix(size)` encodes a size as 4 bytes and raises `ValueError`
    if it does not fit; `frame_packet(packet)` prefixes a packet with its
    length; `all_binary_packet(payload)` prefixes a run of framed packets with
    the total size, the prefix included.
  - `parse_data_packets(data)` returns a list of `ParsedPacket` (`type`,
    `params`, `data`). It stops quietly at the first incomplete or malformed
    packet and returns those decoded before it.
- `smarthome.eventbus`: `Signal` (`connect`, `disconnect`, `emit`) and
  `EventBus`, which holds the signals `login_validation_success`,
  `login_user_init`, `register_success`, `password_change_success` and
  `update_user_avatar`. `default_bus()` returns one shared instance.

```python
from smarthome.packets import all_binary_packet, binary_packet, frame_packet, parse_data_packets

packet = binary_packet("updateUserAvatar", {"user_id": "0123456789"}, b"\x89PNG...",
                       token="token")
wire = all_binary_packet(frame_packet(packet))

for parsed in parse_data_packets(wire):
    print(parsed.type, parsed.params["user_id"], len(parsed.data))
```

## Server side

- `smarthome.pool.ConnectionPool(connect, max_connections=14,
  wait_interval=0.1, wait_time=1.0)` hands out connections created by
  `connect(name)` and reuses returned ones. When every connection is in use,
  `open_connection()` waits up to `wait_time` seconds and then raises
  `PoolExhaustedError`. `connection()` is a context manager that borrows one;
  `close_all()` closes everything the pool created.
- `smarthome.query.DatabaseQuery(pool)` runs statements with `?`
  placeholders on DB-API connections. `execute_query` returns rows as
  dictionaries (`birthday` as `"MM-dd"`, `age`, `gender` and
  `groupMemberCount` as integers, all else as strings); `execute_non_query`
  returns the affected row count and commits unless given a connection;
  `execute_transaction(callback)` commits when the callback returns a truthy
  value and rolls back otherwise. Failed statements raise `QueryError`.
- `smarthome.ids`: `random_id(length)` returns random digits 0–8;
  `generate_id(kind, query)` draws 10-digit ids until one is unused by a
  user (`IdKind.USER`) or group (`IdKind.GROUP`). `ChatType` names private
  and group chats.
- `smarthome.avatars.AvatarStore(root, default_image=None)` keeps avatars in
  `<root>/avatars/user_avatar/<id>.png`. `save_from_path`, `save_image` and
  `save_bytes` run in a background thread and return a future holding
  whether the save succeeded; the optional callback runs only on success.
  `load_image(avatar_id)` returns the stored bytes, or the default image as
  PNG when there is none.
- `smarthome.dbutils`: `validate_password`, `insert_user`,
  `query_user_detail` and `change_password`, plus the `RegisterMessage` and
  `UserInfo` dataclasses.
- `smarthome.server_handlers.ServerHandlers(query, avatars)` handles
  registration, user queries, password changes (checked against the stored
  security answer) and avatar uploads, returning an `HttpResponse` (body and
  content type) or, for avatars, the binary payload to forward.
- `smarthome.connections.ConnectionManager(message_handler)` maps user ids
  to WebSocket objects, passes every received message to
  `message_handler(socket, message)`, and sends text or binary data to a
  user by id.

```python
import sqlite3

from smarthome.avatars import AvatarStore
from smarthome.pool import ConnectionPool
from smarthome.query import DatabaseQuery
from smarthome.server_handlers import ServerHandlers

pool = ConnectionPool(lambda name: sqlite3.connect("smarthome.db", check_same_thread=False))
query = DatabaseQuery(pool)
query.execute_non_query(
    "create table if not exists user "
    "(user_id text, user_name text, password text, avatar_path text, confidential text)"
)
handlers = ServerHandlers(query, AvatarStore("data"))
response = handlers.handle_register({"user_name": "alice", "password": "password"})
print(response.json())
```

## Client side

- `smarthome.config.ConfigFile(filename)`: INI settings with
  `set_value`, `value`, `remove_value` and `is_open`; keys may be
  `"group/name"`, and every change is written back to the file.
- `smarthome.tokens.TokenManager(config_path="config.ini")`: the session
  token, also stored under `"token"` by `save_token`.
- `smarthome.http_client.HttpClient`: posts to `base_url + request_type`
  (default `http://127.0.0.1:8889/`) with a `Bearer` token and `user_id`
  header. Replies go to the callback as `(params, data)`, or without one to
  the `http_text_response` / `http_data_response` signals.
- `smarthome.web_client.WebClient`: a WebSocket client with `on_message`,
  `on_error`, `on_connected` and `on_disconnected` callbacks and the
  `text_message` / `binary_data` signals. A custom `connection_factory` can
  replace the built-in background-thread connection.
- `smarthome.dispatch.MessageDispatcher`: calls a registered
  `handler(params, data)` for each text message or binary packet of a known
  type.
- `smarthome.client_handlers.ClientHandlers`: turns server messages into
  event-bus notifications, saving the user's avatar on login.
- `smarthome.network_service.NetworkService`: sends over WebSocket (default
  `ws://localhost:8888`) and HTTP and feeds all replies to the dispatcher.
  `smarthome.locator` holds one process-wide instance
  (`set_network_service`, `network_service`).
- `smarthome.login_user.LoginUserManager`: after a validated login saves the
  token and sends a `login` message; stores the user's id and name and emits
  `login_user_loaded`.
- `smarthome.client_images`: `rounded_image` and `circular_image` clip an
  image to a rounded shape; `ClientAvatarStore` keeps avatars per logged-in
  user under `<root>/avatars/<user>/user_avatar/`.

## What the package does not do

- It starts no servers. There is no HTTP or WebSocket listener and no routing
  of URLs to `ServerHandlers`; an application has to wire those up itself.
- There is no server-side handler for login validation or the WebSocket
  `login` message.
- It has no graphical interface: windows, login and registration screens are
  not part of it.
- It does not create the database schema or choose a database driver;
  `ConnectionPool` uses whatever `connect` callable it is given.