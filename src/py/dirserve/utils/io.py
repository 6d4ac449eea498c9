EOL: bytes = b"\r\n"


def asBytes(value: str | bytes | None, encoding: str = "utf8") -> bytes:
	if value is None:
		return b""
	elif isinstance(value, bytes):
		return value
	elif isinstance(value, str):
		return value.encode(encoding)
	else:
		raise ValueError(f"Expected bytes or str, got: {value!r}")


class LineParser:
	"""Cuts a byte stream into CRLF-terminated lines. An incomplete line is
	kept pending until the chunk that completes it is fed."""

	__slots__ = ["pending", "line", "scanFrom"]

	def __init__(self) -> None:
		self.pending: bytearray = bytearray()
		self.line: bytes | None = None
		# Where the next search for the EOL starts in `pending`
		self.scanFrom: int = 0

	def reset(self) -> "LineParser":
		self.pending.clear()
		self.line = None
		self.scanFrom = 0
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bytes | None, int]:
		"""Consumes `chunk` from `start` onwards. Returns the completed line
		without its EOL along with the number of bytes consumed, or `None`
		when the whole chunk was kept pending."""
		before: int = len(self.pending)
		self.pending += chunk[start:]
		end: int = self.pending.find(EOL, self.scanFrom)
		if end < 0:
			# The EOL may be split between this chunk and the next one
			self.scanFrom = max(0, len(self.pending) - len(EOL) + 1)
			return None, len(chunk) - start
		self.line = bytes(self.pending[:end])
		self.pending.clear()
		self.scanFrom = 0
		return self.line, end + len(EOL) - before


# EOF
