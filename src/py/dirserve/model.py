import errno
from pathlib import Path
from typing import ClassVar, NamedTuple, TypeAlias

# -----------------------------------------------------------------------------
#
# DATA MODEL
#
# -----------------------------------------------------------------------------


class ResolvedTarget(NamedTuple):
	"""A validated path within the root, along with the metadata fetched
	while resolving it."""

	path: Path
	requestPath: str
	isDirectory: bool
	size: int
	modifiedAt: float


class DirectoryEntry(NamedTuple):
	"""A child of a directory being listed. The size is only set for
	plain files."""

	name: str
	href: str
	size: int | None = None


class DirectoryTarget(NamedTuple):
	path: Path
	requestPath: str


class FileTarget(NamedTuple):
	path: Path
	size: int


TTarget: TypeAlias = DirectoryTarget | FileTarget

# -----------------------------------------------------------------------------
#
# ERRORS
#
# -----------------------------------------------------------------------------


class RequestError(Exception):
	"""Base class for all the failures that end a request. Each subclass
	knows the HTTP status it maps to."""

	STATUS: ClassVar[int] = 500

	def __init__(self, message: str):
		super().__init__(message)
		self.message: str = message

	@property
	def status(self) -> int:
		return self.STATUS


class MalformedEncoding(RequestError):
	STATUS = 400


class InvalidPath(RequestError):
	STATUS = 400


class PathEscape(RequestError):
	STATUS = 400


class FileSystemError(RequestError):
	"""Wraps an `OSError` raised by the filesystem. The original error is
	kept as `__cause__`."""

	@staticmethod
	def FromOSError(error: OSError) -> "FileSystemError":
		# NOTE: We only keep the error text, the filename would leak the
		# absolute location of the root.
		cause: str = error.strerror or str(error)
		if isinstance(error, FileNotFoundError) or error.errno in (
			errno.ENOENT,
			errno.ENOTDIR,
		):
			res: FileSystemError = NotFound(cause)
		elif isinstance(error, PermissionError) or error.errno in (
			errno.EACCES,
			errno.EPERM,
		):
			res = PermissionDenied(cause)
		else:
			res = IoFailure(cause)
		res.__cause__ = error
		return res


class NotFound(FileSystemError):
	STATUS = 404


class PermissionDenied(FileSystemError):
	STATUS = 403


class IoFailure(FileSystemError):
	STATUS = 500


# EOF
