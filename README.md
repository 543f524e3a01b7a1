# reactornet

A small TCP server library built on the reactor pattern. Each event loop runs
in its own thread and waits on its sockets through the standard `selectors`
module. A base loop accepts new connections and hands each one to a loop
picked round-robin from a pool of loop threads. Connections keep input and
output buffers and report what happens to them through callbacks.

It has no third-party dependencies.

## Install

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Building blocks

- `reactornet.event_loop.EventLoop`: one loop per thread; creating a second
  one in the same thread raises `reactornet.logger.FatalError`. `loop()` runs
  it until `quit()` is called (`quit()` is safe from any thread).
  `run_in_loop(cb)` runs `cb` at once when called from the loop's thread and
  queues it otherwise; `queue_in_loop(cb)` always queues it to run after the
  next poll. `close()` releases the loop's resources; the loop is also a
  context manager.
- `reactornet.channel.Channel`: ties a file descriptor to its events of
  interest (`enable_reading()`, `enable_writing()`, `disable_all()`, ...) and
  to `read_callback`, `write_callback`, `close_callback` and `error_callback`.
- `reactornet.poller.SelectorPoller`: waits on the registered channels;
  `new_default_poller(loop)` makes one for a loop.
- `reactornet.event_loop_thread.EventLoopThread`: starts a thread that
  creates and runs its own loop; `start_loop()` returns that loop, `stop()`
  quits it and joins the thread.
- `reactornet.event_loop_thread.EventLoopThreadPool`: `set_thread_num(n)`,
  `start(cb)`, then `get_next_loop()` hands out loops in turn, or the base
  loop when the pool has no threads.
- `reactornet.worker_thread.WorkerThread`: a named thread that records its
  native id before `start()` returns.
- `reactornet.acceptor.Acceptor`: the non-blocking listening socket, run in
  the base loop; accepted sockets go to `new_connection_callback`.
- `reactornet.tcp_connection.TcpConnection`: one accepted connection, with
  `send(data)` (bytes-like, or `str` encoded as UTF-8), `shutdown()`,
  `connected()`, `set_high_water_mark_callback(cb, high_water_mark)` and its
  `state` as a `ConnectionState`.
- `reactornet.tcp_server.TcpServer`: puts it all together. Set
  `connection_callback`, `message_callback`, `write_complete_callback` and
  `thread_init_callback`, choose the pool size with `set_thread_num(n)`, then
  call `start()`. `listen_address` gives the bound address (useful when
  port 0 was asked for); `close()` destroys every connection, stops the pool
  and closes the listening socket.
- `reactornet.buffer.Buffer`: a growable byte buffer with an 8-byte prepend
  area, `append`, `peek`, `retrieve`, `retrieve_as_bytes` and
  `retrieve_all_as_bytes`, plus `read_fd` / `write_fd`.
- `reactornet.inet_address.InetAddress`: an IPv4 address and port,
  defaulting to `127.0.0.1` port 0; invalid addresses or ports raise
  `ValueError`.
- `reactornet.sockets.Socket`: owns a socket, with bind, listen, accept,
  write-side shutdown and the usual socket options.
- `reactornet.logger`: `log_info`, `log_error`, `log_debug` and `log_fatal`
  print tagged, time-stamped lines to standard output. `log_debug` prints
  only when `Logger.instance().debug_enabled` is true; `log_fatal` raises
  `FatalError` after logging.
- `reactornet.timestamp.Timestamp`: whole-second timestamps.

## Writing a server

```python
from reactornet.event_loop import EventLoop
from reactornet.inet_address import InetAddress
from reactornet.tcp_server import TcpServer

loop = EventLoop()
server = TcpServer(loop, InetAddress(8000), "Echo")

def on_message(conn, buf, receive_time):
    conn.send(buf.retrieve_all_as_bytes())
    conn.shutdown()

server.message_callback = on_message
server.set_thread_num(3)
server.start()
try:
    loop.loop()
finally:
    server.close()
    loop.close()
```

The connection callback is called once when a connection comes up and again
when it goes down; check `conn.connected()` to tell them apart.

## Echo server

The package ships an echo server that sends back the first message it
receives on each connection and then closes the connection's write side.
By default it listens on 127.0.0.1 port 8000 with three I/O threads:

```
reactornet-echo
reactornet-echo --port 9000 --threads 1
```

Stop it with Ctrl-C. The same server is available in code as
`reactornet.echo_server.EchoServer`.

## What it does not do

- It only serves: there is no client side for opening outgoing connections.
- It has no timers or scheduled callbacks; work is run through
  `run_in_loop` and `queue_in_loop` only.
- Addresses are IPv4 only.