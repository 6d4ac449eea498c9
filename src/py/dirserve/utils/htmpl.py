from typing import Callable, Iterable, Iterator, Union, cast

from mypy_extensions import KwArg, VarArg

# --
# == HTML templates
#
# Documents are built as trees of nodes with the `H` factories, and then
# serialized as a stream of strings:
#
# ```
# "".join(html(H.h1("Hello, ", H.a("world", href="/world")), doctype="html"))
# ```
#
# Text is always escaped, unless wrapped in `Raw`.

# Elements that never have content nor a closing tag
VOID_ELEMENTS: frozenset[str] = frozenset(
	"area base br col embed hr img input link meta source track wbr".split()
)

TEXT_ESCAPES = str.maketrans(
	{"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#x27;"}
)
ATTRIBUTE_ESCAPES = str.maketrans({"&": "&amp;", '"': "&quot;", "<": "&lt;"})


class Raw:
	"""Markup that is output as-is."""

	__slots__ = ["html"]

	def __init__(self, html: str):
		self.html: str = html


TContent = Union["Node", Raw, str, int, float]
TAttribute = str | int | float | bool | None


def escape(text: str) -> str:
	return text.translate(TEXT_ESCAPES)


def attribute(name: str, value: TAttribute) -> str:
	"""Renders the attribute with its leading space. `None` and `False`
	omit it, `True` renders it without a value."""
	if value is None or value is False:
		return ""
	elif value is True:
		return f" {name}"
	else:
		return f' {name}="{str(value).translate(ATTRIBUTE_ESCAPES)}"'


class Node:
	__slots__ = ["tag", "attributes", "children"]

	def __init__(
		self,
		tag: str,
		children: Iterable[TContent] = (),
		attributes: dict[str, TAttribute] | None = None,
	):
		self.tag: str = tag
		self.children: list[TContent] = list(children)
		self.attributes: dict[str, TAttribute] = attributes or {}

	def iterHTML(self) -> Iterator[str]:
		yield f"<{self.tag}{''.join(attribute(k, v) for k, v in self.attributes.items())}>"
		if self.tag in VOID_ELEMENTS:
			return
		for child in self.children:
			if isinstance(child, Node):
				yield from child.iterHTML()
			elif isinstance(child, Raw):
				yield child.html
			else:
				yield escape(str(child))
		yield f"</{self.tag}>"

	def __str__(self) -> str:
		return "".join(self.iterHTML())


def raw(html: str) -> Raw:
	return Raw(html)


NodeFactory = Callable[
	[
		VarArg(TContent | Iterable[TContent]),
		KwArg(TAttribute),
	],
	Node,
]


def nodeFactory(tag: str) -> NodeFactory:
	"""Returns a function creating `tag` nodes. Lists and tuples given as
	children are flattened, and `_` stands for the `class` attribute as
	it is a keyword."""

	def factory(
		*children: TContent | list[TContent] | tuple[TContent, ...],
		**attributes: TAttribute,
	) -> Node:
		content: list[TContent] = []
		for child in children:
			if isinstance(child, (list, tuple)):
				content.extend(child)
			else:
				content.append(child)
		return Node(
			tag,
			content,
			{("class" if k == "_" else k): v for k, v in attributes.items()},
		)

	factory.__name__ = tag
	return cast(NodeFactory, factory)


class Markup:
	"""Exposes node factories as attributes, as in `H.table(H.tr(...))`."""

	def __init__(self, tags: Iterable[str]):
		for tag in tags:
			setattr(self, tag, nodeFactory(tag))

	def __getattr__(self, name: str) -> NodeFactory:
		raise AttributeError(f"Unsupported tag: {name}")


H: Markup = Markup("a body h1 head html meta style table td th title tr".split())


def html(*nodes: Node, doctype: str | None = None) -> Iterator[str]:
	"""Serializes the nodes, prefixed by the `<!DOCTYPE …>` declaration if
	`doctype` is given."""
	if doctype:
		yield f"<!DOCTYPE {doctype}>\n"
	for node in nodes:
		yield from node.iterHTML()


# EOF
