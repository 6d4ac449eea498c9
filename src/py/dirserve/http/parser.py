from typing import ClassVar, Iterator, Literal, TypeAlias
from urllib.parse import urlsplit

from ..utils.io import LineParser
from .model import (
	HTTPBodyBlob,
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
	headername,
)

# --
# == Request parsing
#
# Requests are parsed incrementally: chunks are fed as they are received, in
# any size, and the parser yields atoms as soon as they are complete. The
# sequence for one request is the request line, the headers, `Body` when a
# body is expected, and finally the `HTTPRequest`. Pipelined requests follow
# each other in the same way. A `BadFormat` atom ends the parsing.

HTTPAtom: TypeAlias = HTTPRequestLine | HTTPHeaders | HTTPProcessingStatus | HTTPRequest

# The byte that starts a TLS record of type handshake
TLS_HANDSHAKE: int = 0x16


def parseTarget(target: str) -> tuple[str, str]:
	"""Returns the path and the query of a request target. Absolute-form
	targets (`http://host/path`) are reduced to their path."""
	if not target.startswith("/") and "://" in target:
		url = urlsplit(target)
		return url.path or "/", url.query
	path, _, query = target.partition("?")
	return path, query


def parseRequestLine(line: bytes) -> HTTPRequestLine | None:
	words: list[str] = line.decode("latin1").split(" ")
	if len(words) != 3 or not all(words):
		return None
	method, target, protocol = words
	path, query = parseTarget(target)
	return HTTPRequestLine(method, path, query, protocol)


class RequestLineParser:
	"""Parses the request line, skipping the empty lines and the TLS
	handshakes that may precede it."""

	__slots__ = ["line", "skip"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		# Bytes of a TLS record left to skip
		self.skip: int = 0

	def reset(self) -> "RequestLineParser":
		self.line.reset()
		self.skip = 0
		return self

	def feed(
		self, chunk: bytes, start: int = 0
	) -> tuple[HTTPRequestLine | Literal[False] | None, int]:
		"""Returns the request line once parsed, `False` if it's malformed
		and `None` when more data is needed, along with the bytes read."""
		available: int = len(chunk) - start
		if self.skip:
			read = min(available, self.skip)
			self.skip -= read
			return None, read
		elif available >= 5 and chunk[start] == TLS_HANDSHAKE:
			# We only speak plain HTTP, the record is skipped using the
			# length from its header.
			size: int = 5 + int.from_bytes(chunk[start + 3 : start + 5], "big")
			read = min(available, size)
			self.skip = size - read
			return None, read
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		self.line.reset()
		if not line:
			# Empty lines before the request line are ignored (RFC 9112 §2.2)
			return None, read
		return parseRequestLine(line) or False, read


class HeadersParser:
	__slots__ = ["line", "headers", "contentType", "contentLength"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.headers: dict[str, str] = {}
		self.contentType: str | None = None
		self.contentLength: int | None = None

	def reset(self) -> "HeadersParser":
		self.line.reset()
		self.headers = {}
		self.contentType = None
		self.contentLength = None
		return self

	def flush(self) -> HTTPHeaders:
		res = HTTPHeaders(self.headers, self.contentType, self.contentLength)
		self.reset()
		return res

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		"""Returns `True` once the empty line ending the headers is read,
		`False` after a header line and `None` when more data is needed."""
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		self.line.reset()
		if not line:
			return True, read
		name, sep, value = line.decode("latin1").partition(":")
		if sep:
			self.add(name.strip(), value.strip())
		return False, read

	def add(self, name: str, value: str) -> None:
		header: str = headername(name)
		self.headers[header] = value
		if header == "Content-Type":
			self.contentType = value
		elif header == "Content-Length":
			self.contentLength = int(value) if value.isdigit() else None


class BodyParser:
	"""Reads a body of a known length."""

	__slots__ = ["expected", "chunks", "read"]

	def __init__(self) -> None:
		self.expected: int = 0
		self.read: int = 0
		self.chunks: list[bytes] = []

	def reset(self, expected: int = 0) -> "BodyParser":
		self.expected = expected
		self.read = 0
		self.chunks = []
		return self

	def flush(self) -> HTTPBodyBlob:
		res = HTTPBodyBlob(b"".join(self.chunks), self.read)
		self.reset()
		return res

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		"""Returns `True` once the expected length is read."""
		n: int = min(len(chunk) - start, self.expected - self.read)
		self.chunks.append(chunk[start : start + n])
		self.read += n
		return (True if self.read >= self.expected else None), n


class HTTPParser:
	"""A stateful parser of HTTP/1.1 requests."""

	# Larger bodies are refused, as they are never used
	MAX_BODY: ClassVar[int] = 1_000_000

	def __init__(self) -> None:
		self.requestLine: RequestLineParser = RequestLineParser()
		self.headers: HeadersParser = HeadersParser()
		self.body: BodyParser = BodyParser()
		self.parser: RequestLineParser | HeadersParser | BodyParser = self.requestLine
		self.line: HTTPRequestLine | None = None
		self.head: HTTPHeaders | None = None

	def reset(self) -> "HTTPParser":
		self.parser = self.requestLine.reset()
		self.headers.reset()
		self.body.reset()
		self.line = None
		self.head = None
		return self

	def request(self, body: HTTPBodyBlob) -> HTTPRequest:
		line = self.line
		assert line is not None, "Request line should be parsed first"
		res = HTTPRequest(
			method=line.method,
			path=line.path,
			query=line.query,
			headers=self.head,
			body=body,
			protocol=line.protocol,
		)
		self.reset()
		return res

	def feed(self, chunk: bytes) -> Iterator[HTTPAtom]:
		offset: int = 0
		while offset < len(chunk):
			if self.parser is self.requestLine:
				line, read = self.requestLine.feed(chunk, offset)
				offset += read
				if line is False:
					yield HTTPProcessingStatus.BadFormat
					return
				elif line:
					self.line = line
					self.parser = self.headers
					yield line
			elif self.parser is self.headers:
				done, read = self.headers.feed(chunk, offset)
				offset += read
				if not done:
					continue
				head = self.head = self.headers.flush()
				yield head
				length: int = head.contentLength or 0
				if length > self.MAX_BODY:
					yield HTTPProcessingStatus.BadFormat
					return
				elif length:
					self.parser = self.body.reset(length)
					yield HTTPProcessingStatus.Body
				else:
					yield self.request(HTTPBodyBlob())
			else:
				done, read = self.body.feed(chunk, offset)
				offset += read
				if done:
					yield self.request(self.body.flush())


# EOF
