import sys
import time
import traceback
from contextvars import ContextVar
from enum import Enum
from typing import Any, NamedTuple, TextIO, TypeAlias

from .term import Term

# --
# == Logging
#
# A small structured logger writing one line per entry to stderr, like:
#
# ```
# [dirserve] 🚀 Serving directory over HTTP Root=/srv Host=0.0.0.0 Port=8000
# [dirserve] GET /docs/
# ```
#
# Context is given as keyword arguments and rendered as `Key=value` pairs.

# Values accepted as logging context
TValue: TypeAlias = str | int | float | bool | None

OUTPUT: TextIO = sys.stderr

LOG_ORIGIN: ContextVar[str] = ContextVar("LogOrigin", default="dirserve")


class LogLevel(Enum):
	Debug = 0
	Info = 10
	Warning = 30
	# A failure that was handled
	Error = 40
	# A failure that was not
	Exception = 50

	@property
	def color(self) -> int:
		return LOG_COLORS[self]


LOG_COLORS: dict[LogLevel, int] = {
	LogLevel.Debug: 31,
	LogLevel.Info: 75,
	LogLevel.Warning: 202,
	LogLevel.Error: 160,
	LogLevel.Exception: 124,
}

# Entries below that level are dropped
LOG_LEVEL: ContextVar[LogLevel] = ContextVar("LogLevel", default=LogLevel.Info)


class LogEntry(NamedTuple):
	level: LogLevel
	message: str
	origin: str
	time: float
	context: dict[str, TValue]
	# Set for events and errors, rendered right after the message
	value: Any = None
	icon: str | None = None
	isEvent: bool = False


def formatValue(value: Any) -> str:
	if value is None or value in ((), [], {}):
		return "◌"
	elif isinstance(value, bool):
		return "✓" if value else "✗"
	elif isinstance(value, float):
		return f"{value:0.2f}"
	elif isinstance(value, str):
		return repr(value) if " " in value else value
	elif isinstance(value, (list, tuple)):
		return ",".join(formatValue(_) for _ in value)
	else:
		return str(value)


def formatContext(context: dict[str, TValue]) -> str:
	return " ".join(
		f"{Term.BOLD}{k}{Term.RESET}={formatValue(v)}" for k, v in context.items()
	)


def formatEntry(entry: LogEntry) -> str:
	parts: list[str] = [f"{Term.Color(entry.level.color)}{Term.BOLD}[{entry.origin}]"]
	if entry.isEvent:
		parts.append(f"{entry.message}{Term.RESET}")
	else:
		parts[0] += Term.RESET
		if entry.icon:
			parts.append(entry.icon)
		parts.append(entry.message)
	if entry.value is not None:
		parts.append(formatValue(entry.value))
	if entry.context:
		parts.append(formatContext(entry.context))
	return " ".join(parts) + Term.RESET


def logged(level: LogLevel) -> bool:
	"""Tells if entries of the given level are sent, so that costly entries
	can be skipped."""
	return level.value >= LOG_LEVEL.get().value


def log(
	level: LogLevel,
	message: str,
	*,
	value: Any = None,
	icon: str | None = None,
	isEvent: bool = False,
	context: dict[str, TValue] | None = None,
) -> LogEntry:
	entry = LogEntry(
		level=level,
		message=message,
		origin=LOG_ORIGIN.get(),
		time=time.time(),
		context=context or {},
		value=value,
		icon=icon,
		isEvent=isEvent,
	)
	if logged(level):
		OUTPUT.write(formatEntry(entry) + "\n")
		OUTPUT.flush()
	return entry


def debug(message: str, *, icon: str | None = None, **context: TValue) -> LogEntry:
	return log(LogLevel.Debug, message, icon=icon, context=context)


def info(message: str, *, icon: str | None = None, **context: TValue) -> LogEntry:
	return log(LogLevel.Info, message, icon=icon, context=context)


def warning(message: str, *, icon: str | None = None, **context: TValue) -> LogEntry:
	return log(LogLevel.Warning, message, icon=icon, context=context)


def error(
	message: str,
	code: int | str | None,
	*,
	icon: str | None = None,
	**context: TValue,
) -> LogEntry:
	"""Logs a handled failure, `code` being a short identifier for it."""
	return log(LogLevel.Error, message, value=code, icon=icon, context=context)


def event(name: str, value: Any = None, **context: TValue) -> LogEntry:
	"""Logs something that happened, like a request (`event("GET", "/")`)."""
	return log(LogLevel.Info, name, value=value, isEvent=True, context=context)


def exception(error: BaseException, message: str | None = None) -> BaseException:
	"""Logs the exception with its traceback and returns it, so that it can
	be used as `raise exception(e)`."""
	summary: str = f"[{error.__class__.__name__}] {error}"
	lines: list[str] = [f"!!! EXCP {f'{message}: {summary}' if message else summary}"]
	for frame in traceback.extract_tb(error.__traceback__):
		lines.append(f"... in {frame.name:15s} at {frame.lineno or 0:4d} in {frame.filename}")
	try:
		OUTPUT.write("\n".join(lines) + "\n")
		OUTPUT.flush()
	except OSError:  # nosec: B110
		# Called from exception handlers, so there's nowhere left to report to.
		pass
	return error


# EOF
