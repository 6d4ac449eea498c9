from pathlib import Path

from ..http.model import HTTPRequest, HTTPResponse
from ..http.status import HTTP_STATUS
from ..listing import renderDirectory
from ..model import (
	DirectoryTarget,
	FileSystemError,
	FileTarget,
	RequestError,
	ResolvedTarget,
	TTarget,
)
from ..paths import makeRoot, resolvePath
from ..streaming import streamFile
from ..utils.files import contentType
from ..utils.logging import warning


def classify(target: ResolvedTarget) -> TTarget:
	"""Decides how the resolved target is to be rendered. This does no I/O."""
	if target.isDirectory:
		return DirectoryTarget(target.path, target.requestPath)
	else:
		return FileTarget(target.path, target.size)


class FileService:
	"""A service to browse and download the files of a local directory. Every
	request method is processed the same way, and nothing is kept between
	requests: the root is the only state and it never changes."""

	def __init__(self, root: str | Path | None = None):
		self.root: Path = makeRoot(root or ".")

	def process(self, request: HTTPRequest) -> HTTPResponse:
		"""Processes the request, always returning a response. Failures are
		mapped to error responses by `onError`."""
		try:
			target = classify(resolvePath(self.root, request.path))
			if isinstance(target, DirectoryTarget):
				return self.renderDir(request, target)
			else:
				return self.renderFile(request, target)
		except RequestError as e:
			return self.onError(request, e)

	def renderDir(self, request: HTTPRequest, target: DirectoryTarget) -> HTTPResponse:
		return request.respondHTML(renderDirectory(target.path, target.requestPath))

	def renderFile(self, request: HTTPRequest, target: FileTarget) -> HTTPResponse:
		# The length comes from the metadata fetched during resolution, so
		# that it is known before the stream starts.
		return request.respondStream(
			streamFile(target.path, target.size),
			contentType=contentType(target.path),
			contentLength=target.size,
		)

	def onError(self, request: HTTPRequest, error: RequestError) -> HTTPResponse:
		"""Maps the error to its response. Input errors get a short
		message, filesystem errors include their cause."""
		status: int = error.status
		warning(
			"Request failed",
			Method=request.method,
			Path=request.path,
			Status=status,
			Reason=error.message,
		)
		if isinstance(error, FileSystemError):
			return request.error(status, f"{HTTP_STATUS[status]}: {error.message}")
		else:
			return request.badRequest(f"Bad request: {error.message}")

	def __repr__(self) -> str:
		return f"(FileService {self.root})"


# EOF
