from dataclasses import dataclass, field
from enum import Enum

from brewcook.errors import ResolutionError
from brewcook.graph import deps_for, leaves
from brewcook.manifest import Manifest
from brewcook.snapshot import Snapshot


class ActionKind(Enum):
    TAP_ADD = 'tap_add'
    CASK_ADD = 'cask_add'
    FORMULA_ADD = 'formula_add'
    FORMULA_REMOVE = 'formula_remove'
    CASK_REMOVE = 'cask_remove'
    TAP_REMOVE = 'tap_remove'


# Additions before removals, taps before anything resolved through them.
PLAN_ORDER = list(ActionKind)


def install_flags(args) -> list[str]:
    """Manifest args (`with-foo` or `--with-foo`) -> `--with-foo`."""
    return [f'--{arg.lstrip("-")}' for arg in args]


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    target: str
    args: tuple[str, ...] = ()

    def argv(self, executable: str = 'brew') -> list[str]:
        """The single backend invocation this action stands for."""
        if self.kind is ActionKind.TAP_ADD:
            return [executable, 'tap', self.target]
        if self.kind is ActionKind.TAP_REMOVE:
            return [executable, 'untap', self.target]
        if self.kind is ActionKind.CASK_ADD:
            return [executable, 'install', '--cask', self.target]
        if self.kind is ActionKind.CASK_REMOVE:
            return [executable, 'uninstall', '--cask', self.target]
        if self.kind is ActionKind.FORMULA_ADD:
            return [executable, 'install', self.target] + install_flags(self.args)
        # The diff already accounts for dependents.
        return [executable, 'rm', '--ignore-dependencies', self.target]


@dataclass
class Report:
    """Every intermediate set of a diff, for verbose output."""

    installed: set[str] = field(default_factory=set)
    leaves: set[str] = field(default_factory=set)
    desired: set[str] = field(default_factory=set)
    deps: set[str] = field(default_factory=set)
    deps_current: set[str] = field(default_factory=set)
    deps_after: set[str] = field(default_factory=set)
    deps_added: set[str] = field(default_factory=set)
    deps_orphaned: set[str] = field(default_factory=set)
    pkgs_add: set[str] = field(default_factory=set)
    pkgs_remove: set[str] = field(default_factory=set)
    casks_add: set[str] = field(default_factory=set)
    casks_remove: set[str] = field(default_factory=set)
    taps_add: set[str] = field(default_factory=set)
    taps_remove: set[str] = field(default_factory=set)
    built_with: set[tuple[str, str]] = field(default_factory=set)


@dataclass
class Plan:
    actions: list[Action] = field(default_factory=list)
    report: Report = field(default_factory=Report)

    @property
    def is_empty(self) -> bool:
        return not self.actions

    def groups(self) -> list[tuple[ActionKind, list[Action]]]:
        """Non-empty action groups in execution order."""
        result = []
        for kind in PLAN_ORDER:
            group = [a for a in self.actions if a.kind is kind]
            if group:
                result.append((kind, group))
        return result

    def targets(self, kind: ActionKind) -> list[str]:
        return [a.target for a in self.actions if a.kind is kind]


def resolve_desired(manifest: Manifest, snapshot: Snapshot) -> dict[str, tuple[str, ...]]:
    """Manifest formula names -> {full name: install args}, in manifest order."""
    unresolved = [name for name in manifest.formula_names if snapshot.resolve(name) is None]
    if unresolved:
        raise ResolutionError(unresolved)

    desired = {}
    for entry in manifest.formulas:
        desired[snapshot.resolve(entry.name).name] = entry.args
    return desired


def compute_plan(manifest: Manifest, snapshot: Snapshot) -> Plan:
    """Diff the manifest against the snapshot. Pure: nothing is executed."""
    desired_args = resolve_desired(manifest, snapshot)
    desired = set(desired_args)
    installed = set(snapshot.formulae)

    trace = []
    leaf_set = leaves(desired, snapshot, trace)
    pkgs_remove = leaf_set - desired
    pkgs_add = desired - leaf_set

    deps_current = deps_for(leaf_set, snapshot, trace)
    # What would remain, computed against the unmodified snapshot.
    deps_after = deps_for(leaf_set - pkgs_remove, snapshot)
    deps_orphaned = deps_current - deps_after - leaf_set

    installed_casks = set(snapshot.casks)
    wanted_casks = set(manifest.casks)
    installed_taps = set(snapshot.taps)
    wanted_taps = set(manifest.taps)

    report = Report(
        installed=installed,
        leaves=leaf_set,
        desired=desired,
        deps=installed - leaf_set,
        deps_current=deps_current,
        deps_after=deps_after,
        deps_added=deps_after - deps_current,
        deps_orphaned=deps_orphaned,
        pkgs_add=pkgs_add,
        pkgs_remove=pkgs_remove,
        casks_add=wanted_casks - installed_casks,
        casks_remove=installed_casks - wanted_casks,
        taps_add=wanted_taps - installed_taps,
        taps_remove=installed_taps - wanted_taps,
        built_with=set(trace),
    )

    actions = []
    actions += [Action(ActionKind.TAP_ADD, t) for t in manifest.taps if t in report.taps_add]
    actions += [Action(ActionKind.CASK_ADD, c) for c in manifest.casks if c in report.casks_add]
    actions += [
        Action(ActionKind.FORMULA_ADD, name, args)
        for name, args in desired_args.items()
        if name in pkgs_add
    ]
    # Closure targets the snapshot never saw installed cannot be removed.
    actions += [
        Action(ActionKind.FORMULA_REMOVE, name)
        for name in sorted((pkgs_remove | deps_orphaned) & installed)
    ]
    actions += [Action(ActionKind.CASK_REMOVE, c) for c in sorted(report.casks_remove)]
    actions += [Action(ActionKind.TAP_REMOVE, t) for t in sorted(report.taps_remove)]

    return Plan(actions=actions, report=report)


def manifest_listing(manifest: Manifest, snapshot: Snapshot) -> list[str]:
    """Resolved formula full names followed by cask tokens."""
    return list(resolve_desired(manifest, snapshot)) + list(manifest.casks)
