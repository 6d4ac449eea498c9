import os
from pathlib import Path

import pytest

from dirserve.model import (
	InvalidPath,
	IoFailure,
	MalformedEncoding,
	NotFound,
	PathEscape,
	PermissionDenied,
	FileSystemError,
)
from dirserve.paths import decodePath, isWithin, makeRoot, relativeParts, resolvePath


class Recorder:
	"""Stands for `os.stat`, recording every path it is given."""

	def __init__(self) -> None:
		self.paths: list[Path] = []

	def __call__(self, path: Path) -> os.stat_result:
		self.paths.append(path)
		return os.stat(path)


ESCAPES = [
	"/..",
	"/../",
	"/../etc/passwd",
	"/b/../../etc/passwd",
	"/b/..",
	"/%2e%2e/etc/passwd",
	"/b/%2E%2E/%2e%2e",
	"//etc/passwd",
	"/%2Fetc/passwd",
]


@pytest.mark.parametrize("path", ESCAPES)
def test_escapes_are_rejected_before_any_filesystem_call(root: Path, path: str):
	metadata = Recorder()
	with pytest.raises(PathEscape):
		resolvePath(root, path, metadata=metadata)
	assert metadata.paths == []


@pytest.mark.parametrize("path", ["", "a.txt", "%2E/a.txt", "b/"])
def test_paths_must_start_with_a_slash(root: Path, path: str):
	metadata = Recorder()
	with pytest.raises(InvalidPath):
		resolvePath(root, path, metadata=metadata)
	assert metadata.paths == []


def test_nul_bytes_are_invalid(root: Path):
	with pytest.raises(InvalidPath):
		resolvePath(root, "/a.txt%00.png")


@pytest.mark.parametrize("path", ["/%FF", "/%C3%28", "/b/%E2%82", "/%80abc"])
def test_invalid_utf8_is_malformed(root: Path, path: str):
	with pytest.raises(MalformedEncoding):
		resolvePath(root, path)


def test_decoding():
	assert decodePath("/hello%20world") == "/hello world"
	assert decodePath("/caf%C3%A9") == "/café"
	# Invalid escapes are kept as-is
	assert decodePath("/100%zz") == "/100%zz"
	assert decodePath(b"/a%2Fb") == "/a/b"


def test_raw_bytes_are_decoded_as_utf8():
	# The parser gives one character per received byte
	assert decodePath("/caf\xc3\xa9.txt") == "/café.txt"
	assert decodePath("/caf\xc3\xa9%20au%20lait") == "/café au lait"
	for path in ["/caf\xe9.txt", "/\u20ac"]:
		with pytest.raises(MalformedEncoding):
			decodePath(path)


def test_relative_parts_ignore_empty_and_current_segments():
	assert relativeParts("/") == ()
	assert relativeParts("/x//y/./z/") == ("x", "y", "z")


def test_resolved_targets_stay_within_the_root(root: Path):
	metadata = Recorder()
	for path in ["/", "/a.txt", "/b/", "/x/./y", "/x//y/z.json"]:
		target = resolvePath(root, path, metadata=metadata)
		assert isWithin(root, target.path)
	assert metadata.paths
	assert all(isWithin(root, _) for _ in metadata.paths)


def test_resolve_file(root: Path):
	target = resolvePath(root, "/a.txt")
	assert target.path == root / "a.txt"
	assert target.requestPath == "/a.txt"
	assert not target.isDirectory
	assert target.size == 3


def test_resolve_directory(root: Path):
	target = resolvePath(root, "/x/y/")
	assert target.path == root / "x" / "y"
	assert target.requestPath == "/x/y/"
	assert target.isDirectory


def test_resolve_root(root: Path):
	target = resolvePath(root, "/")
	assert target.path == root
	assert target.isDirectory


def test_missing_entries_are_not_found(root: Path):
	with pytest.raises(NotFound) as e:
		resolvePath(root, "/missing.txt")
	assert isinstance(e.value.__cause__, FileNotFoundError)
	assert e.value.status == 404
	# The cause is described without leaking the location of the root
	assert str(root) not in e.value.message


def test_files_used_as_directories_are_not_found(root: Path):
	with pytest.raises(NotFound):
		resolvePath(root, "/a.txt/child")


def test_filesystem_errors_are_classified():
	assert isinstance(
		FileSystemError.FromOSError(PermissionError(13, "Permission denied")),
		PermissionDenied,
	)
	assert isinstance(
		FileSystemError.FromOSError(FileNotFoundError(2, "No such file or directory")),
		NotFound,
	)
	failure = FileSystemError.FromOSError(OSError(5, "Input/output error"))
	assert isinstance(failure, IoFailure)
	assert failure.status == 500
	assert failure.message == "Input/output error"


def test_metadata_failures_are_mapped(root: Path):
	def failing(path: Path) -> os.stat_result:
		raise PermissionError(13, "Permission denied", str(path))

	with pytest.raises(PermissionDenied) as e:
		resolvePath(root, "/a.txt", metadata=failing)
	assert e.value.status == 403
	assert isinstance(e.value.__cause__, PermissionError)


def test_root_is_canonical(root: Path, tmp_path: Path):
	assert makeRoot(root / "x" / ".." / "b") == root / "b"
	with pytest.raises(ValueError):
		makeRoot(root / "a.txt")
	with pytest.raises(ValueError):
		makeRoot(tmp_path / "missing")


# EOF
