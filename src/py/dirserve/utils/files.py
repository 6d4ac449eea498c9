from pathlib import PurePath

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"

# NOTE: Extensions are matched exactly, `README.TXT` is not `txt`.
CONTENT_TYPES: dict[str, str] = {
	"css": "text/css; charset=utf-8",
	"htm": "text/html; charset=utf-8",
	"html": "text/html; charset=utf-8",
	"json": "application/json",
	"txt": "text/plain; charset=utf-8",
	"xml": "text/xml",
}


def extension(path: PurePath | str) -> str | None:
	"""Returns the extension of the path without the leading dot. Dotfiles
	like `.profile` have no extension."""
	suffix: str = PurePath(path).suffix
	return suffix[1:] if suffix else None


def contentType(path: PurePath | str) -> str:
	"""Returns the content type for the given path, based on its extension only."""
	ext = extension(path)
	return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE) if ext else DEFAULT_CONTENT_TYPE


# --
# == Sizes
#
# Sizes use decimal prefixes, ie. powers of 1000.

SIZE_PREFIXES: list[str] = ["k", "M", "G", "T", "P", "E", "Z", "Y"]


def prettySize(size: int) -> str:
	"""Formats the byte count like `3 B`, `1.0 kB` or `1.5 MB`."""
	if size < 1000:
		return f"{size} B"
	value: float = float(size)
	prefix: str = ""
	for prefix in SIZE_PREFIXES:
		value /= 1000.0
		if value < 1000.0:
			break
	return f"{value:.1f} {prefix}B"


# EOF
