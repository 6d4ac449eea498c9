from pathlib import Path
from typing import BinaryIO, Iterator

from .model import FileSystemError

CHUNK_SIZE: int = 64_000


class FileStream(Iterator[bytes]):
	"""A lazy, finite and non-restartable sequence of chunks read from an
	open file. Exactly `length` bytes are produced, and the file is closed
	once the stream ends, fails or is closed."""

	__slots__ = ["file", "length", "remaining", "size"]

	def __init__(self, file: BinaryIO, length: int, size: int = CHUNK_SIZE):
		self.file: BinaryIO = file
		self.length: int = length
		self.remaining: int = length
		self.size: int = size

	@property
	def isClosed(self) -> bool:
		return self.file.closed

	def __iter__(self) -> "FileStream":
		return self

	def __next__(self) -> bytes:
		if self.remaining <= 0 or self.file.closed:
			self.close()
			raise StopIteration
		try:
			chunk: bytes = self.file.read(min(self.size, self.remaining))
		except BaseException:
			self.close()
			raise
		if not chunk:
			self.close()
			# The advertised length can't be honoured anymore
			raise OSError(
				f"File truncated while streaming, {self.remaining} bytes missing"
			)
		self.remaining -= len(chunk)
		return chunk

	def close(self) -> None:
		self.file.close()

	def __del__(self) -> None:
		self.close()


def openFile(path: Path) -> BinaryIO:
	"""Opens the file for reading, mapping failures to filesystem errors."""
	try:
		return open(path, "rb")
	except OSError as e:
		raise FileSystemError.FromOSError(e) from e


def streamFile(path: Path, length: int, size: int = CHUNK_SIZE) -> FileStream:
	"""Opens the file at `path` right away and returns the stream of its
	first `length` bytes. Opening errors are raised here, before any response
	is committed."""
	return FileStream(openFile(path), length, size)


# EOF
