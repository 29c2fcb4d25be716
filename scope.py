from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from syntax import Line

DECLARATION_KEYWORD = "let"


@dataclass(frozen=True)
class Scope:
    names: frozenset[str] = frozenset()

    @classmethod
    def seeded(cls, names: Iterable[str]) -> Scope:
        return cls(names=frozenset(names))

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def declare(self, name: str) -> Scope:
        if name in self.names:
            return self
        return Scope(names=self.names | {name})


def resolve(scope: Scope, name: str, initializer: str) -> tuple[Line, Scope]:
    if name in scope:
        return Line(f"{name} = {initializer};"), scope
    return Line(f"{DECLARATION_KEYWORD} {name} = {initializer};"), scope.declare(name)


def fork(scope: Scope, *bindings: str) -> Scope:
    return Scope(names=scope.names.union(bindings))
