import os
from typing import ClassVar, Mapping


def hasColor(env: Mapping[str, str] = os.environ) -> bool:
	"""Colours are on unless `NO_COLOR` is set. `FORCE_COLOR` takes
	precedence over it. SEE: https://no-color.org/"""
	return "FORCE_COLOR" in env or "NO_COLOR" not in env


class Term:
	"""ANSI escapes for the terminal logger, all empty when colours are off."""

	ENABLED: ClassVar[bool] = hasColor()
	BOLD: ClassVar[str] = "\033[1m" if ENABLED else ""
	RESET: ClassVar[str] = "\033[0m" if ENABLED else ""

	@classmethod
	def Color(cls, code: int) -> str:
		"""Foreground colour from the 256 colours palette."""
		return f"\033[38;5;{code}m" if cls.ENABLED else ""


# EOF
