import os
from stat import S_ISDIR
from pathlib import Path, PurePath
from typing import Callable
from urllib.parse import unquote_to_bytes

from .model import (
	FileSystemError,
	InvalidPath,
	MalformedEncoding,
	PathEscape,
	ResolvedTarget,
)

# --
# == Path resolution
#
# Turns the path of a request URI into a path within the root. The escape
# check is done twice: syntactically on the components before joining, and
# on the joined path itself. Filesystem canonicalization is never relied
# upon to keep requests within the root.

TStat = Callable[[Path], os.stat_result]


def makeRoot(path: str | Path) -> Path:
	"""Returns the canonical, absolute version of the given root directory."""
	root: Path = Path(path).expanduser().resolve()
	if not root.is_dir():
		raise ValueError(f"Root is not an existing directory: {path}")
	return root


def decodePath(raw: str | bytes) -> str:
	"""Percent-decodes the given URI path, which must be valid UTF-8. A `str`
	path holds the bytes as received on the wire, one character per byte
	(latin1), as produced by the request parser."""
	try:
		data: bytes = raw.encode("latin1") if isinstance(raw, str) else raw
		return unquote_to_bytes(data).decode("utf8")
	except (UnicodeEncodeError, UnicodeDecodeError) as e:
		raise MalformedEncoding("Request path is not valid UTF-8") from e


def relativeParts(path: str) -> tuple[str, ...]:
	"""Returns the components of the decoded `path` relative to the root,
	rejecting anything that would go up or be anchored elsewhere."""
	if not path.startswith("/"):
		raise InvalidPath("Request path must start with '/'")
	if "\0" in path:
		raise InvalidPath("Request path contains a NUL byte")
	relative: PurePath = PurePath(path[1:])
	# An anchor here is a second root marker (`//etc`) or a drive prefix.
	if relative.anchor:
		raise PathEscape("Request path is anchored outside of the root")
	if ".." in relative.parts:
		raise PathEscape("Request path goes up the root")
	return relative.parts


def isWithin(root: Path, path: Path) -> bool:
	return path.parts[: len(parts := root.parts)] == parts


def resolvePath(
	root: Path, raw: str | bytes, *, metadata: TStat = os.stat
) -> ResolvedTarget:
	"""Resolves the raw request path against the root, returning the target
	and its metadata. Raises a `RequestError` subclass otherwise."""
	request_path: str = decodePath(raw)
	local_path: Path = root.joinpath(*relativeParts(request_path))
	if not isWithin(root, local_path):
		raise PathEscape("Request path resolves outside of the root")
	try:
		meta: os.stat_result = metadata(local_path)
	except OSError as e:
		raise FileSystemError.FromOSError(e) from e
	return ResolvedTarget(
		path=local_path,
		requestPath=request_path,
		isDirectory=S_ISDIR(meta.st_mode),
		size=meta.st_size,
		modifiedAt=meta.st_mtime,
	)


# EOF
