import pytest

from brewcook.graph import Dependency, DependencyKind, Formula, Tab
from brewcook.snapshot import Snapshot


def req(name):
    return Dependency(name, DependencyKind.REQUIRED)


def rec(name):
    return Dependency(name, DependencyKind.RECOMMENDED)


def opt(name):
    return Dependency(name, DependencyKind.OPTIONAL)


def build(name):
    return Dependency(name, DependencyKind.BUILD)


@pytest.fixture
def installed():
    """Factory for an installed formula: installed('a', req('b'), options=['with-c'])."""

    def make(name, *deps, options=(), aliases=()):
        return Formula(name, tuple(deps), tuple(aliases), Tab(frozenset(options)))

    return make


@pytest.fixture
def snapshot():
    """Factory for a Snapshot from formulae, casks and taps."""

    def make(*formulae, casks=(), taps=(), available=()):
        return Snapshot.of(formulae, casks, taps, available)

    return make
