import os
import stat
from pathlib import Path
from urllib.parse import quote

from .model import DirectoryEntry, FileSystemError
from .utils.files import prettySize
from .utils.htmpl import H, Node, html, raw

FILE_CSS: str = """
:root {
	font-family: sans-serif;
	font-size: 14px;
	line-height: 1.35em;
	padding: 20px;
	background: #F0F0F0;
}
h1 {
	margin-top: 1.75em;
	margin-bottom: 1.75em;
	line-height: 1.25em;
}
h1 a {
	text-decoration: none;
}
table {
	border-collapse: collapse;
	min-width: 40em;
}
th, td {
	text-align: left;
	padding: 0.35em 1em;
	border-bottom: 1px solid #DDDDDD;
}
tr:hover td {
	background: #FFFFFF;
}
.size {
	text-align: right;
	white-space: nowrap;
}
"""


def isRepresentable(name: str) -> bool:
	"""Names that were not valid UTF-8 on disk come back with surrogate
	escapes, and can't be written in the page."""
	try:
		name.encode("utf8")
	except UnicodeEncodeError:
		return False
	return True


def link(*segments: str) -> str:
	return quote("/".join(segments), safe="/")


def listEntries(path: Path, requestPath: str) -> list[DirectoryEntry]:
	"""Lists the children of the directory at `path`, sorted by name. Links
	are the request path joined with each name."""
	base: str = requestPath if requestPath.endswith("/") else f"{requestPath}/"
	res: list[DirectoryEntry] = []
	try:
		with os.scandir(path) as entries:
			children = sorted(entries, key=lambda _: _.name)
	except OSError as e:
		raise FileSystemError.FromOSError(e) from e
	for child in children:
		name: str = child.name
		if not isRepresentable(name):
			continue
		# The size is only known for plain files, any failure to get it
		# leaves the cell empty.
		try:
			meta: os.stat_result | None = child.stat()
		except OSError:
			meta = None
		if meta and stat.S_ISDIR(meta.st_mode):
			res.append(DirectoryEntry(f"{name}/", link(base + name, "")))
		elif meta and stat.S_ISREG(meta.st_mode):
			res.append(DirectoryEntry(name, link(base + name), meta.st_size))
		else:
			res.append(DirectoryEntry(name, link(base + name)))
	return res


def breadcrumbs(requestPath: str) -> list[Node | str]:
	"""Returns the root link followed by one link per segment of the request
	path, each pointing to its cumulative prefix."""
	res: list[Node | str] = [H.a("/", href="/")]
	# Empty and current directory segments don't name anything
	segments: list[str] = [_ for _ in requestPath.split("/") if _ and _ != "."]
	for i, segment in enumerate(segments):
		res.append(H.a(segment, href=link("", *segments[: i + 1])))
		res.append("/")
	return res


def renderEntry(entry: DirectoryEntry) -> Node:
	return H.tr(
		H.td(H.a(entry.name, href=entry.href)),
		H.td("" if entry.size is None else prettySize(entry.size), _="size"),
	)


def renderDirectory(path: Path, requestPath: str) -> str:
	"""Renders the complete HTML listing of the directory at `path`."""
	rows: list[Node] = [renderEntry(_) for _ in listEntries(path, requestPath)]
	return "".join(
		html(
			H.html(
				H.head(
					H.title(f"Contents of {requestPath}"),
					H.meta(charset="UTF-8"),
					H.style(raw(FILE_CSS)),
				),
				H.body(
					H.h1("Contents of ", *breadcrumbs(requestPath)),
					H.table(
						H.tr(H.th("Filename"), H.th("Size", _="size")),
						*rows,
					),
				),
			),
			doctype="html",
		)
	)


# EOF
