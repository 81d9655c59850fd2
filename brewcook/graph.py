"""Formula dependency graph and the two traversals the diff is built on.

`leaves` answers "which installed formulae are not merely somebody's
dependency", `deps_for` computes the pruned transitive closure of a set of
formulae. Both walk the same edges with the same rule: required edges always
count, build edges never do, and optional/recommended edges count only when
the dependent's Tab says they were built in.
"""

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum


class DependencyKind(Enum):
    REQUIRED = 'required'
    RECOMMENDED = 'recommended'
    OPTIONAL = 'optional'
    BUILD = 'build'


def short_name(name: str) -> str:
    """`user/tap/foo` -> `foo`."""
    return name.rsplit('/', 1)[-1]


@dataclass(frozen=True)
class Dependency:
    """An edge from its dependent formula to `name`."""

    name: str
    kind: DependencyKind = DependencyKind.REQUIRED

    @property
    def conditional(self) -> bool:
        return self.kind in (DependencyKind.OPTIONAL, DependencyKind.RECOMMENDED)


@dataclass(frozen=True)
class Tab:
    """Install receipt: the options a formula was actually built with."""

    used_options: frozenset[str] = frozenset()

    def with_(self, dep: Dependency) -> bool:
        """Was dep built in?"""
        option = short_name(dep.name)
        if dep.kind is DependencyKind.OPTIONAL:
            return f'with-{option}' in self.used_options
        if dep.kind is DependencyKind.RECOMMENDED:
            return f'without-{option}' not in self.used_options
        return True


@dataclass(frozen=True)
class Formula:
    """A formula; identity is its full name."""

    name: str
    deps: tuple[Dependency, ...] = field(default=(), compare=False)
    aliases: tuple[str, ...] = field(default=(), compare=False)
    tab: Tab | None = field(default=None, compare=False)

    @property
    def short_name(self) -> str:
        return short_name(self.name)

    def __str__(self) -> str:
        return self.name


def exercised(dependent: Formula, dep: Dependency, trace: list | None = None) -> bool:
    """Does the edge dependent -> dep count as in use?"""
    if dep.kind is DependencyKind.BUILD:
        return False
    if not dep.conditional:
        return True
    if dependent.tab is None:
        return True
    if not dependent.tab.with_(dep):
        return False
    if trace is not None:
        trace.append((dependent.name, dep.name))
    return True


def leaves(desired: Iterable[str], snapshot, trace: list | None = None) -> set[str]:
    """Installed formulae that are wanted or not used as anyone's dependency.

    Every installed member of desired is a leaf, even when something else
    depends on it.
    """
    used = set()
    for formula in snapshot.installed:
        for dep in formula.deps:
            if exercised(formula, dep, trace):
                used.add(snapshot.identity(dep.name))

    used -= set(desired)
    return {f.name for f in snapshot.installed} - used


def deps_for(formulae: Iterable[str], snapshot, trace: list | None = None) -> set[str]:
    """Transitive dependencies of formulae, pruned edge by edge.

    Each edge is judged against its own dependent, never against the
    formula the walk started from. Targets unknown to the snapshot are
    included but not descended into.
    """
    closure: set[str] = set()
    work: deque[tuple[Formula, Dependency]] = deque()

    for name in sorted(set(formulae)):
        formula = snapshot.get(name)
        if formula is not None:
            work.extend((formula, dep) for dep in formula.deps)

    while work:
        dependent, dep = work.popleft()
        if not exercised(dependent, dep, trace):
            continue
        target = snapshot.identity(dep.name)
        if target in closure:
            continue
        closure.add(target)
        formula = snapshot.get(target)
        if formula is not None:
            work.extend((formula, d) for d in formula.deps)

    return closure
