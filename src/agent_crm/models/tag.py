"""Tag models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class TagCreate:
    name: str
    color: str = "#3B82F6"
    description: str = ""


@dataclass
class TagView:
    id: int
    name: str
    color: str
    description: str
