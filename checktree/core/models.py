from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(eq=False)
class Node:
    id: str
    text: str = ""
    checked: bool = False
    tristate: bool = False
    is_leaf: bool = True
    expanded: bool = False
    parent: Optional["Node"] = field(default=None, repr=False)
    children: list["Node"] = field(default_factory=list, repr=False)

    @property
    def depth(self) -> int:
        depth = 0
        current = self.parent
        while current is not None:
            depth += 1
            current = current.parent
        return depth

    @property
    def label(self) -> str:
        return self.text or self.id


@dataclass(frozen=True)
class ChildrenLoaded:
    node: Node
    children: tuple[Node, ...] = ()


@dataclass(frozen=True)
class NodeExpanded:
    node: Node


@dataclass(frozen=True)
class NodeCollapsed:
    node: Node


StructuralEvent = ChildrenLoaded | NodeExpanded | NodeCollapsed
