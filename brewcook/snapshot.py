from collections.abc import Iterable
from dataclasses import dataclass, field

from brewcook import brew
from brewcook.graph import Formula
from brewcook.output import capture_io


@dataclass
class Snapshot:
    """Point-in-time read of installed formulae, casks and taps.

    `available` holds formulae known to the package database but not
    installed; only manifest names get looked up there.
    """

    formulae: dict[str, Formula] = field(default_factory=dict)
    casks: tuple[str, ...] = ()
    taps: tuple[str, ...] = ()
    available: dict[str, Formula] = field(default_factory=dict)
    _names: dict[str, str] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        # Full names win over short names and aliases.
        for formula in [*self.available.values(), *self.formulae.values()]:
            for alias in (formula.short_name, *formula.aliases):
                self._names.setdefault(alias, formula.name)
        for formula in [*self.available.values(), *self.formulae.values()]:
            self._names[formula.name] = formula.name

    @classmethod
    def of(
        cls,
        installed: Iterable[Formula] = (),
        casks: Iterable[str] = (),
        taps: Iterable[str] = (),
        available: Iterable[Formula] = (),
    ) -> 'Snapshot':
        return cls(
            formulae={f.name: f for f in installed},
            casks=tuple(casks),
            taps=tuple(taps),
            available={f.name: f for f in available},
        )

    @property
    def installed(self) -> list[Formula]:
        return [self.formulae[name] for name in sorted(self.formulae)]

    def identity(self, name: str) -> str:
        """Canonical full name for name, or name itself when unknown."""
        return self._names.get(name, name)

    def get(self, name: str) -> Formula | None:
        full = self.identity(name)
        return self.formulae.get(full) or self.available.get(full)

    def resolve(self, name: str) -> Formula | None:
        return self.get(name)


def load_snapshot(wanted: Iterable[str] = (), executable: str = 'brew', debug: bool = False) -> Snapshot:
    """Query the backend once for everything the diff needs."""
    installed = brew.installed_formulae(executable, debug)
    snapshot = Snapshot.of(installed)

    available = []
    for name in wanted:
        if snapshot.get(name) is None:
            formula = brew.formula_info(name, executable, debug)
            if formula is not None:
                available.append(formula)

    # Cask listing complains loudly about casks with stale metadata.
    with capture_io():
        casks = brew.installed_casks(executable, debug)
    taps = brew.installed_taps(executable, debug)

    return Snapshot.of(installed, casks, taps, available)
