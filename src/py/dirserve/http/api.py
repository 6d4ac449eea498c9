from abc import ABC, abstractmethod
from typing import Any, Generic, Iterator, TypeVar

from .status import HTTP_STATUS

T = TypeVar("T")

TEXT_CONTENT_TYPE: str = "text/plain; charset=utf-8"
HTML_CONTENT_TYPE: str = "text/html; charset=UTF-8"


class ResponseFactory(ABC, Generic[T]):
	"""Shorthands to create the responses of a request. Implementations
	only need to provide `respond`."""

	@abstractmethod
	def respond(
		self,
		content: Any = None,
		contentType: str | None = None,
		contentLength: int | None = None,
		status: int = 200,
		headers: dict[str, str] | None = None,
		message: str | None = None,
	) -> T: ...

	def error(self, status: int, content: str | None = None) -> T:
		"""A plain text error, the body defaulting to the reason phrase."""
		reason: str = HTTP_STATUS.get(status, "Error")
		return self.respond(
			content=reason if content is None else content,
			contentType=TEXT_CONTENT_TYPE,
			status=status,
			message=reason,
		)

	def badRequest(self, content: str | None = None) -> T:
		return self.error(400, content)

	def respondHTML(self, html: str | bytes, status: int = 200) -> T:
		return self.respond(content=html, contentType=HTML_CONTENT_TYPE, status=status)

	def respondStream(
		self,
		stream: Iterator[bytes],
		contentType: str,
		contentLength: int | None = None,
		status: int = 200,
	) -> T:
		"""Responds with a body produced lazily. When `contentLength` is
		given, the stream must yield exactly that many bytes."""
		return self.respond(
			content=stream,
			contentType=contentType,
			contentLength=contentLength,
			status=status,
		)


# EOF
