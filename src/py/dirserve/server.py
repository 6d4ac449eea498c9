import asyncio
import errno
import socket
import threading
from dataclasses import dataclass
from pathlib import Path
from signal import SIGINT, SIGTERM
from typing import Any, NamedTuple

from .config import HOST, LOG_REQUESTS, PORT
from .http.model import HTTPBodyWriter, HTTPProcessingStatus, HTTPRequest, HTTPResponse
from .http.parser import HTTPParser
from .services.files import FileService
from .utils.logging import LogLevel, debug, error, event, exception, info, logged, warning

# -----------------------------------------------------------------------------
#
# OPTIONS & STATE
#
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class ServerState:
	"""The cancellation token of the server. Only the transport sees it,
	the service is never aware of shutdowns."""

	isRunning: bool = True

	def stop(self) -> None:
		if self.isRunning:
			info("Server stopping…")
		self.isRunning = False

	def onException(
		self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
	) -> None:
		if e := context.get("exception"):
			exception(e)
		else:
			warning("Event loop error", Reason=context.get("message"))


class ServerOptions(NamedTuple):
	host: str = "0.0.0.0"  # nosec: B104
	port: int = 8000
	backlog: int = 1_000
	# Time given to in-flight requests on shutdown
	timeout: float = 10.0
	# Timeout of accepts and reads, which is how quickly a stop is noticed
	polling: float = 1.0
	readsize: int = 4_096
	# Idle time after which a keep-alive connection is closed
	keepalive: float = 5.0
	logRequests: bool = True
	stopSignals: bool = True


OPTIONS: ServerOptions = ServerOptions()


def cannedResponse(status: str, body: str) -> bytes:
	"""A complete response that closes the connection, for the failures
	that happen outside of the service."""
	return (
		f"HTTP/1.1 {status}\r\n"
		"Content-Type: text/plain; charset=utf-8\r\n"
		f"Content-Length: {len(body)}\r\n"
		"Connection: close\r\n"
		"\r\n"
		f"{body}"
	).encode("ascii")


SERVER_BAD_REQUEST: bytes = cannedResponse("400 Bad Request", "Bad request")
SERVER_ERROR: bytes = cannedResponse("500 Internal Server Error", "Internal server error")

# -----------------------------------------------------------------------------
#
# TRANSPORT
#
# -----------------------------------------------------------------------------


class AIOSocketBodyWriter(HTTPBodyWriter):
	"""Writes to a non-blocking socket. Each write waits until the socket
	took the data, so that a slow client pauses the body producer."""

	__slots__ = ["client", "loop"]

	def __init__(self, client: socket.socket, loop: asyncio.AbstractEventLoop) -> None:
		super().__init__()
		self.client: socket.socket = client
		self.loop: asyncio.AbstractEventLoop = loop

	async def _writeBytes(self, chunk: bytes) -> None:
		if chunk:
			await self.loop.sock_sendall(self.client, chunk)


class AIOSocketServer:
	"""Serves a `FileService` using asyncio and non-blocking sockets, with
	one task per connection."""

	@staticmethod
	async def Receive(
		client: socket.socket,
		buffer: bytearray,
		*,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
		state: ServerState,
	) -> int | None:
		"""Returns the number of bytes read into `buffer`, or `None` when the
		connection stayed idle too long or the server is stopping."""
		idle: float = 0.0
		while state.isRunning and idle < options.keepalive:
			try:
				# NOTE: A cancelled receive doesn't consume any data
				return await asyncio.wait_for(
					loop.sock_recv_into(client, buffer), timeout=options.polling
				)
			except asyncio.TimeoutError:
				idle += options.polling
		return None

	@classmethod
	async def OnRequest(
		cls,
		service: FileService,
		client: socket.socket,
		*,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
		state: ServerState,
	) -> None:
		"""Processes the requests sent on the connection until it's closed
		by either side, then closes the socket."""
		buffer = bytearray(options.readsize)
		parser = HTTPParser()
		writer = AIOSocketBodyWriter(client, loop)
		status: HTTPProcessingStatus = HTTPProcessingStatus.Processing
		received: int = 0
		sent: int = 0
		try:
			while status is HTTPProcessingStatus.Processing and not writer.shouldClose:
				n = await cls.Receive(
					client, buffer, loop=loop, options=options, state=state
				)
				if n is None:
					status = HTTPProcessingStatus.Timeout
					break
				elif n == 0:
					status = HTTPProcessingStatus.NoData
					break
				# The chunk may hold more than one request (pipelining)
				for atom in parser.feed(bytes(buffer[:n])):
					if atom is HTTPProcessingStatus.BadFormat:
						warning("Malformed request", Client=client.fileno())
						await writer.write(SERVER_BAD_REQUEST)
						status = atom
						break
					elif isinstance(atom, HTTPRequest):
						received += 1
						if options.logRequests:
							event(atom.method, atom.path)
						close: bool = not (atom.keepAlive and state.isRunning)
						res = await cls.SendResponse(atom, service, writer, close=close)
						if res:
							sent += 1
						if close or not res or res.shouldClose:
							writer.shouldClose = True
						if writer.shouldClose:
							break
			if received != sent:
				warning(
					"Incomplete responses",
					Status=status.name,
					Requests=received,
					Responses=sent,
				)
		except Exception as e:
			exception(e)
		finally:
			client.close()

	@staticmethod
	async def SendResponse(
		request: HTTPRequest,
		service: FileService,
		writer: HTTPBodyWriter,
		*,
		close: bool = False,
	) -> HTTPResponse | None:
		"""Sends the service's response to the request. Returns `None` when
		the service failed to produce one."""
		try:
			res: HTTPResponse = service.process(request)
		except Exception as e:
			exception(e, f"Could not process {request.method} {request.path}")
			await writer.write(SERVER_ERROR)
			writer.shouldClose = True
			return None
		if close:
			res.setHeader("Connection", "close")
		try:
			await writer.write(res.head())
			# HEAD gets the headers of a GET, without the body
			if request.method == "HEAD":
				res.close()
			else:
				await writer.write(res.body)
		except (BrokenPipeError, ConnectionResetError):
			logged(LogLevel.Debug) and debug(
				"Client closed the connection", Method=request.method, Path=request.path
			)
			res.close()
			writer.shouldClose = True
		except Exception as e:
			# The head may be sent already, so the connection is closed
			# instead of sending an error.
			exception(e, f"Could not send {request.method} {request.path}")
			res.close()
			writer.shouldClose = True
		return res

	@staticmethod
	def Bind(options: ServerOptions) -> socket.socket:
		"""Returns a listening non-blocking socket, or raises an `OSError`
		after logging it."""
		server = socket.socket(socket.AF_INET6 if ":" in options.host else socket.AF_INET)
		try:
			server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
			server.bind((options.host, options.port))
			server.listen(options.backlog)
		except OSError as e:
			server.close()
			error(
				f"Unable to bind to {options.host}:{options.port}, aborting.",
				"HOSTPORTERR",
				Reason=e.strerror,
			)
			raise
		server.setblocking(False)
		return server

	@classmethod
	async def Serve(
		cls,
		service: FileService,
		options: ServerOptions = OPTIONS,
		state: ServerState | None = None,
	) -> None:
		"""Accepts connections until the state is stopped, then gives the
		in-flight requests `options.timeout` seconds to complete."""
		state = state or ServerState()
		server = cls.Bind(options)
		loop = asyncio.get_running_loop()
		tasks: set[asyncio.Task[None]] = set()
		# Signal handlers can only be installed from the main thread
		signals: bool = (
			options.stopSignals and threading.current_thread() is threading.main_thread()
		)
		if signals:
			for sig in (SIGINT, SIGTERM):
				loop.add_signal_handler(sig, state.stop)
		loop.set_exception_handler(state.onException)
		info(
			"Serving directory over HTTP",
			icon="🚀",
			Root=str(service.root),
			Host=options.host,
			Port=server.getsockname()[1],
		)
		try:
			while state.isRunning:
				try:
					client, _ = await asyncio.wait_for(
						loop.sock_accept(server), timeout=options.polling
					)
				except asyncio.TimeoutError:
					continue
				except OSError as e:
					if e.errno == errno.EMFILE:
						# Too many open files, until connections are closed
						await asyncio.sleep(0.1)
					else:
						exception(e)
					continue
				client.setblocking(False)
				task = loop.create_task(
					cls.OnRequest(service, client, loop=loop, options=options, state=state)
				)
				tasks.add(task)
				task.add_done_callback(tasks.discard)
		finally:
			state.stop()
			server.close()
			if signals:
				for sig in (SIGINT, SIGTERM):
					loop.remove_signal_handler(sig)
			if tasks:
				info("Waiting for in-flight requests", Count=len(tasks))
				_, pending = await asyncio.wait(set(tasks), timeout=options.timeout)
				for task in pending:
					task.cancel()
				await asyncio.gather(*pending, return_exceptions=True)
			info("Server stopped")


def run(
	root: str | Path | FileService = ".",
	*,
	host: str = HOST,
	port: int = PORT,
	backlog: int = OPTIONS.backlog,
	timeout: float = OPTIONS.timeout,
	polling: float = OPTIONS.polling,
	keepalive: float = OPTIONS.keepalive,
	logRequests: bool = LOG_REQUESTS,
) -> None:
	"""Serves the directory until SIGINT or SIGTERM is received. Raises an
	`OSError` when the address can't be bound."""
	service = root if isinstance(root, FileService) else FileService(root)
	options = ServerOptions(
		host=host,
		port=port,
		backlog=backlog,
		timeout=timeout,
		polling=polling,
		keepalive=keepalive,
		logRequests=logRequests,
	)
	try:
		asyncio.run(AIOSocketServer.Serve(service, options))
	except KeyboardInterrupt:
		event("ManualShutdown")


# EOF
