"""Shared types for the coachdb package."""

from typing import Any

Row = dict[str, Any]
Params = tuple | list | dict
ParamsList = list[tuple] | list[list]
ErrorDetails = dict[str, str | None]
