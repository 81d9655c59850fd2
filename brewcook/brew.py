import json
import os
import subprocess
import sys

from brewcook.errors import BackendError
from brewcook.graph import Dependency, DependencyKind, Formula, Tab

EDGE_KEYS = [
    ('dependencies', DependencyKind.REQUIRED),
    ('recommended_dependencies', DependencyKind.RECOMMENDED),
    ('optional_dependencies', DependencyKind.OPTIONAL),
    ('build_dependencies', DependencyKind.BUILD),
]

# What `brew info` says for a name no tap provides.
UNKNOWN_FORMULA = 'No available formula'


def brew_env(debug: bool = False) -> dict | None:
    """Environment for brew subprocesses; None inherits ours unchanged."""
    if not debug:
        return None
    return dict(os.environ, HOMEBREW_DEBUG='1')


def query(args: list[str], executable: str = 'brew', debug: bool = False) -> str:
    """Run a read-only brew command and return its stdout."""
    cmd = [executable] + args
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, env=brew_env(debug))
    except OSError as e:
        raise BackendError(f'Cannot run {executable}: {e.strerror or e}') from e
    if result.stderr:
        sys.stderr.write(result.stderr)
    if result.returncode != 0:
        raise BackendError(
            f'{" ".join(cmd)} failed with exit code {result.returncode}',
            stderr=result.stderr or '',
        )
    return result.stdout


def parse_formula(data: dict) -> Formula:
    """Build a Formula from one entry of `brew info --json=v2`."""
    deps = []
    for key, kind in EDGE_KEYS:
        for name in data.get(key) or []:
            deps.append(Dependency(name, kind))

    tab = None
    installed = data.get('installed') or []
    if installed:
        used = installed[0].get('used_options') or []
        tab = Tab(frozenset(opt.lstrip('-') for opt in used))

    return Formula(
        name=data.get('full_name') or data['name'],
        deps=tuple(deps),
        aliases=tuple(data.get('aliases') or ()),
        tab=tab,
    )


def parse_info(output: str) -> list[Formula]:
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise BackendError(f'Unparseable brew info output: {e}') from e
    try:
        return [parse_formula(entry) for entry in data.get('formulae', [])]
    except (AttributeError, KeyError, TypeError) as e:
        raise BackendError(f'Unexpected brew info output: {e}') from e


def installed_formulae(executable: str = 'brew', debug: bool = False) -> list[Formula]:
    """All installed formulae with their edges and Tabs."""
    formulae = parse_info(query(['info', '--json=v2', '--installed'], executable, debug))
    return [f for f in formulae if f.tab is not None]


def formula_info(name: str, executable: str = 'brew', debug: bool = False) -> Formula | None:
    """Look up a single formula; None if brew does not know it.

    Any other failure (network, API, broken tap) propagates.
    """
    try:
        output = query(['info', '--json=v2', '--formula', name], executable, debug)
    except BackendError as e:
        if UNKNOWN_FORMULA in e.stderr:
            return None
        raise
    formulae = parse_info(output)
    return formulae[0] if formulae else None


def _lines(output: str) -> list[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


def installed_casks(executable: str = 'brew', debug: bool = False) -> list[str]:
    return _lines(query(['list', '--cask', '-1'], executable, debug))


def installed_taps(executable: str = 'brew', debug: bool = False) -> list[str]:
    return _lines(query(['tap'], executable, debug))


def invoke(argv: list[str], debug: bool = False) -> int:
    """Run a mutating brew command attached to the terminal."""
    try:
        result = subprocess.run(argv, env=brew_env(debug))
    except OSError as e:
        raise BackendError(f'Cannot run {argv[0]}: {e.strerror or e}') from e
    return result.returncode
