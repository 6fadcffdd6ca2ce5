"""Utilities to normalize task titles and free-text labels."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_TASK_PATTERN = re.compile(r"^\s*(\d{1,2})\s*-\s*(\d{1,2})\s*-(.*)$", re.DOTALL)
_TRAILING_DASH = re.compile(r"\s*-\s*$")


@dataclass(frozen=True, slots=True)
class TaskLabel:
    """The ``DD - NN - description`` convention used for task titles."""

    day: int
    sequence: int
    description: str

    @property
    def has_description(self) -> bool:
        return bool(self.description)


def parse_task_label(task: Optional[str]) -> Optional[TaskLabel]:
    """Split ``"24 - 01 - Reunião"`` (spaces optional) into its parts."""
    if not task:
        return None
    match = _TASK_PATTERN.match(task)
    if not match:
        return None
    day, sequence, rest = match.groups()
    return TaskLabel(day=int(day), sequence=int(sequence), description=rest.strip())


def format_task_label(day: int | str, sequence: int | str, description: str) -> str:
    return f"{int(day):02d} - {int(sequence):02d} - {clean_description(description)}"


def clean_description(value: str) -> str:
    """Collapse whitespace and drop a dangling trailing dash."""
    collapsed = re.sub(r"\s+", " ", value.strip())
    return _TRAILING_DASH.sub("", collapsed)


def normalize_label(label: Optional[str]) -> str:
    """Lower-case a label and collapse runs of whitespace."""
    if not label:
        return ""
    return re.sub(r"\s+", " ", str(label)).strip().lower()
