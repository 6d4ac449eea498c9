from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Iterator, NamedTuple, TypeAlias

from ..utils.io import asBytes
from .api import ResponseFactory
from .status import HTTP_STATUS

# -----------------------------------------------------------------------------
#
# HEADERS
#
# -----------------------------------------------------------------------------


def headername(name: str) -> str:
	"""Normalizes the header name as `Kebab-Case`, so that `content-type`
	and `CONTENT-TYPE` are both `Content-Type`."""
	return "-".join(_.capitalize() for _ in name.split("-"))


class HTTPRequestLine(NamedTuple):
	method: str
	path: str
	query: str
	protocol: str


class HTTPHeaders(NamedTuple):
	"""The headers by normalized name, along with the ones that drive the
	processing of the message."""

	headers: dict[str, str]
	contentType: str | None = None
	contentLength: int | None = None


class HTTPProcessingStatus(Enum):
	"""What the parser and the transport report besides requests."""

	Processing = 0
	Body = 1
	Timeout = 10
	NoData = 11
	BadFormat = 12


# -----------------------------------------------------------------------------
#
# BODIES
#
# -----------------------------------------------------------------------------


class HTTPBodyBlob(NamedTuple):
	"""A body that is fully available as bytes."""

	payload: bytes = b""
	length: int = 0


class HTTPBodyStream(NamedTuple):
	"""A body produced lazily by an iterator of chunks. The iterator is
	consumed once, and closed once written or discarded."""

	stream: Iterator[bytes]

	def close(self) -> None:
		if close := getattr(self.stream, "close", None):
			close()


THTTPBody: TypeAlias = HTTPBodyBlob | HTTPBodyStream


class HTTPBodyWriter(ABC):
	"""Writes heads and bodies to a transport. Once `shouldClose` is set,
	the connection can't carry another response."""

	__slots__ = ["shouldClose"]

	def __init__(self) -> None:
		self.shouldClose: bool = False

	async def write(self, body: THTTPBody | bytes | None) -> None:
		if body is None:
			return
		elif isinstance(body, bytes):
			await self._writeBytes(body)
		elif isinstance(body, HTTPBodyBlob):
			await self._writeBytes(body.payload)
		elif isinstance(body, HTTPBodyStream):
			try:
				for chunk in body.stream:
					await self._writeBytes(chunk)
			except BaseException:
				# Part of the body may be sent already
				self.shouldClose = True
				raise
			finally:
				body.close()
		else:
			raise ValueError(f"Unsupported body: {body!r}")

	@abstractmethod
	async def _writeBytes(self, chunk: bytes) -> None: ...


# -----------------------------------------------------------------------------
#
# REQUEST
#
# -----------------------------------------------------------------------------


class HTTPRequest(ResponseFactory["HTTPResponse"]):
	"""A parsed request, which is also the factory of its responses. The
	path is kept as received, still percent-encoded, with one character
	per byte (latin1) so that the original bytes can be recovered."""

	__slots__ = ["method", "path", "query", "protocol", "_headers", "_body"]

	def __init__(
		self,
		method: str,
		path: str,
		query: str | None = None,
		headers: HTTPHeaders | None = None,
		body: HTTPBodyBlob | None = None,
		protocol: str = "HTTP/1.1",
	):
		self.method: str = method
		self.path: str = path
		self.query: str | None = query
		self.protocol: str = protocol
		self._headers: HTTPHeaders = headers or HTTPHeaders({})
		self._body: HTTPBodyBlob | None = body

	@property
	def headers(self) -> dict[str, str]:
		return self._headers.headers

	def header(self, name: str) -> str | None:
		return self._headers.headers.get(headername(name))

	@property
	def contentLength(self) -> int | None:
		return self._headers.contentLength

	@property
	def keepAlive(self) -> bool:
		"""HTTP/1.1 connections persist unless closed explicitly, HTTP/1.0
		ones only when asked to."""
		connection: str = (self.header("Connection") or "").lower()
		if self.protocol == "HTTP/1.0":
			return connection == "keep-alive"
		else:
			return connection != "close"

	def respond(
		self,
		content: Any = None,
		contentType: str | None = None,
		contentLength: int | None = None,
		status: int = 200,
		headers: dict[str, str] | None = None,
		message: str | None = None,
	) -> "HTTPResponse":
		return HTTPResponse.Create(
			content=content,
			contentType=contentType,
			contentLength=contentLength,
			headers=headers,
			status=status,
			message=message,
			protocol=self.protocol,
		)

	def __str__(self) -> str:
		return f"Request({self.method} {self.path}{f'?{self.query}' if self.query else ''})"


# -----------------------------------------------------------------------------
#
# RESPONSE
#
# -----------------------------------------------------------------------------


class HTTPResponse:
	__slots__ = ["protocol", "status", "message", "headers", "body", "shouldClose"]

	@staticmethod
	def Create(
		content: Any = None,
		contentType: str | None = None,
		contentLength: int | None = None,
		headers: dict[str, str] | None = None,
		status: int = 200,
		message: str | None = None,
		protocol: str = "HTTP/1.1",
	) -> "HTTPResponse":
		"""Creates a response from text, bytes or an iterator of chunks. The
		`Content-Length` is computed for text and bytes, and must be given
		for iterators so that the connection can be kept alive."""
		body: THTTPBody | None = None
		if content is None:
			contentLength = 0
		elif isinstance(content, (str, bytes)):
			payload: bytes = asBytes(content)
			contentLength = len(payload)
			body = HTTPBodyBlob(payload, contentLength)
		elif isinstance(content, Iterator):
			body = HTTPBodyStream(content)
		else:
			raise ValueError(f"Unsupported content {type(content)}: {content!r}")
		res_headers: dict[str, str] = {
			headername(k): v for k, v in (headers or {}).items()
		}
		if contentType is not None:
			res_headers["Content-Type"] = contentType
		if contentLength is not None:
			res_headers["Content-Length"] = str(contentLength)
		return HTTPResponse(
			protocol=protocol,
			status=status,
			message=message,
			headers=HTTPHeaders(res_headers, contentType, contentLength),
			body=body,
			# Without a length, the body ends with the connection.
			shouldClose=contentLength is None,
		)

	def __init__(
		self,
		protocol: str,
		status: int,
		message: str | None,
		headers: HTTPHeaders,
		body: THTTPBody | None = None,
		shouldClose: bool = False,
	):
		self.protocol: str = protocol
		self.status: int = status
		self.message: str = message or HTTP_STATUS.get(status, "Unknown")
		self.headers: HTTPHeaders = headers
		self.body: THTTPBody | None = body
		self.shouldClose: bool = shouldClose

	def getHeader(self, name: str) -> str | None:
		return self.headers.headers.get(headername(name))

	def setHeader(self, name: str, value: str | int | None) -> "HTTPResponse":
		if value is None:
			self.headers.headers.pop(headername(name), None)
		else:
			self.headers.headers[headername(name)] = str(value)
		return self

	@property
	def payload(self) -> bytes | None:
		"""The body bytes, when available at once."""
		return self.body.payload if isinstance(self.body, HTTPBodyBlob) else None

	def head(self) -> bytes:
		"""The status line and the headers, up to the empty line."""
		lines: list[str] = [f"{self.protocol} {self.status} {self.message}"]
		lines.extend(f"{k}: {v}" for k, v in self.headers.headers.items())
		return ("\r\n".join(lines) + "\r\n\r\n").encode("latin1")

	def close(self) -> "HTTPResponse":
		"""Discards the body without sending it, closing any open stream."""
		if isinstance(self.body, HTTPBodyStream):
			self.body.close()
		return self

	def __str__(self) -> str:
		return f"Response({self.protocol} {self.status} {self.message} {self.headers.headers})"


# EOF
