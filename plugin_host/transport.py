
# standard imports
import asyncio
import collections
import inspect
import itertools
import json
import struct
import sys
import typing

# third-part imports

# local imports
from plugin_host import errors
from plugin_host import interfaces
from plugin_host import logger


# Message kinds, sent as the first element of every message array
REQUEST = 0
RESPONSE = 1
NOTIFICATION = 2

SerializedMessage = typing.List[typing.Any]


class JsonCodec(object):
    """
    Frames messages as a 4 byte big-endian length followed by the utf-8 json body
    """

    HEADER: typing.ClassVar[struct.Struct] = struct.Struct(">I")

    @staticmethod
    def make_packet(msg: SerializedMessage) -> bytes:
        data = json.dumps(msg).encode('utf-8')
        return JsonCodec.HEADER.pack(len(data)) + data

    @staticmethod
    async def unwrap_packet(reader: asyncio.StreamReader) -> typing.Optional[SerializedMessage]:
        """
        Read the next message off the stream. Returns None once the stream is closed
        """
        try:
            header = await reader.readexactly(JsonCodec.HEADER.size)
        except asyncio.IncompleteReadError as e:
            if e.partial:
                raise errors.TransportError("Connection closed inside a frame header")
            return None

        msg_len = JsonCodec.HEADER.unpack(header)[0]
        try:
            buf = await reader.readexactly(msg_len)
        except asyncio.IncompleteReadError:
            raise errors.TransportError("Connection closed before the full message ({} bytes) was read".format(msg_len))

        try:
            return json.loads(buf.decode('utf-8'))
        except ValueError as e:
            raise errors.TransportError("Failed to decode message: {}".format(e))


class MessageEvent(asyncio.Event):
    """
    Custom event that allows us to introduce an async boundary when waiting for a response to come in
    """
    value: typing.Optional[typing.Tuple[typing.Any, typing.Any]] = None


class Response(object):
    """
    Response sink handed to request handlers. Exactly one response gets written per request
    """

    def __init__(self, session: 'RpcSession', msg_id: typing.Any) -> None:
        self._session = session
        self._msg_id = msg_id
        self._sent = False

    @property
    def sent(self) -> bool:
        return self._sent

    def send(self, result: typing.Any, is_error: bool = False) -> None:
        if self._sent:
            self._session.logger.warning("Dropping second response to message id={}".format(self._msg_id))
            return None

        if is_error:
            msg = [RESPONSE, self._msg_id, result, None]
        else:
            msg = [RESPONSE, self._msg_id, None, result]

        # Encode before marking as sent, so an unserializable result can still be answered with an error
        packet = JsonCodec.make_packet(msg)
        self._sent = True
        self._session.write_packet(packet)


class RpcSession(object):
    """
    An rpc connection over a pair of asyncio streams

    Inbound requests and notifications are emitted as `request` and `notification` events
    Each one is scheduled as its own task so several calls can be in flight at once
    A `disconnect` event is emitted once the reader reaches the end of the stream
    """

    def __init__(self,
                 reader: asyncio.StreamReader,
                 writer: typing.Any,
                 log: typing.Optional[logger.Logger] = None) -> None:
        self._reader = reader
        self._writer = writer
        self._log = log or logger.dummy_logger()

        self._handlers: typing.Dict[str, typing.List[interfaces.EventCallback]] = collections.defaultdict(list)
        self._waiting_messages: typing.Dict[int, MessageEvent] = {}
        self._ids = itertools.count(1)
        self._tasks: typing.Set['asyncio.Future[typing.Any]'] = set()
        self._closed = False

    @property
    def logger(self) -> logger.Logger:
        return self._log

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def waiting_messages(self) -> typing.Dict[int, MessageEvent]:
        return self._waiting_messages

    def on(self, event: str, callback: interfaces.EventCallback) -> None:
        self._handlers[event].append(callback)

    def emit(self, event: str, *args: typing.Any) -> None:
        """
        Call every callback subscribed to `event`. Coroutine results are scheduled as tasks
        """
        for callback in self._handlers.get(event, []):
            result = callback(*args)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._task_done)

    def _task_done(self, task: 'asyncio.Future[typing.Any]') -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self._log.error("Unhandled exception in event handler: {}".format(task.exception()))

    def write_packet(self, packet: bytes) -> None:
        self._writer.write(packet)

    def write(self, msg: SerializedMessage) -> None:
        self.write_packet(JsonCodec.make_packet(msg))

    async def request(self, method: str, *args: typing.Any) -> typing.Any:
        """
        Send a request to the remote end and wait for its response

        Raises `TransportError` once the connection has closed, since no response can arrive
        """
        if self._closed:
            raise errors.TransportError("Request {} failed: Connection closed".format(method))

        msg_id = next(self._ids)
        continuation = MessageEvent()
        self._waiting_messages[msg_id] = continuation

        self.write([REQUEST, msg_id, method, list(args)])
        self._log.debug("Sent request id={} ({}). Waiting for response".format(msg_id, method))
        try:
            await continuation.wait()
        finally:
            del self._waiting_messages[msg_id]

        error, result = continuation.value or ("Connection closed", None)
        if error is not None:
            raise errors.TransportError("Request {} failed: {}".format(method, error))
        return result

    def notify(self, method: str, *args: typing.Any) -> None:
        self.write([NOTIFICATION, method, list(args)])

    async def run(self) -> None:
        """
        Read and handle messages until the connection closes
        """
        try:
            while True:
                try:
                    msg = await JsonCodec.unwrap_packet(self._reader)
                except errors.TransportError as e:
                    self._log.error("Dropping connection: {}".format(e))
                    break

                if msg is None:
                    break

                try:
                    self._handle(msg)
                except errors.TransportError as e:
                    self._log.warning("Ignoring message: {}".format(e))

        finally:
            self._closed = True

            # Anyone still waiting on a response won't be getting one
            for continuation in self._waiting_messages.values():
                if not continuation.is_set():
                    continuation.value = ("Connection closed", None)
                    continuation.set()

            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)

            self.emit('disconnect')

    def _handle(self, msg: typing.Any) -> None:
        if not isinstance(msg, list) or len(msg) == 0:
            raise errors.TransportError("Expected a message array, got {!r}".format(msg))

        kind = msg[0]
        if kind == REQUEST and len(msg) == 4:
            _, msg_id, method, params = msg
            self._log.debug("Received request id={} ({})".format(msg_id, method))
            self.emit('request', str(method), _check_params(params), Response(self, _check_id(msg_id)))

        elif kind == NOTIFICATION and len(msg) == 3:
            _, method, params = msg
            self._log.debug("Received notification ({})".format(method))
            self.emit('notification', str(method), _check_params(params))

        elif kind == RESPONSE and len(msg) == 4:
            _, msg_id, error, result = msg
            continuation = self._waiting_messages.get(_check_id(msg_id))
            if continuation is None:
                self._log.debug("Received unexpected response to message {}".format(msg_id))
                return None

            continuation.value = (error, result)
            continuation.set()

        else:
            raise errors.TransportError("Unrecognized message {!r}".format(msg))


# Ids are echoed back in responses, so they must be json scalars usable as dict keys
def _check_id(msg_id: typing.Any) -> typing.Union[int, str]:
    if isinstance(msg_id, bool) or not isinstance(msg_id, (int, str)):
        raise errors.TransportError("Invalid message id {!r}".format(msg_id))
    return msg_id


def _check_params(params: typing.Any) -> typing.List[typing.Any]:
    if params is None:
        return []
    if not isinstance(params, list):
        raise errors.TransportError("Expected an argument array, got {!r}".format(params))
    return params


def attach(reader: asyncio.StreamReader, writer: typing.Any, log: typing.Optional[logger.Logger] = None) -> RpcSession:
    return RpcSession(reader, writer, log)


async def open_stdio() -> typing.Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """
    Wrap the process stdin/stdout in asyncio streams

    stdio is reversed since it's from the perspective of the editor: we read its requests on stdin
    """
    loop = asyncio.get_running_loop()

    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin.buffer)

    w_transport, w_protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, sys.stdout.buffer)
    writer = asyncio.StreamWriter(w_transport, w_protocol, reader, loop)
    return reader, writer
