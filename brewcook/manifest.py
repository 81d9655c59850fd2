import socket
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from brewcook.errors import ConfigError


@dataclass(frozen=True)
class FormulaEntry:
    """A formula selection and the install args to pass along with it."""

    name: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class Manifest:
    """Desired state: taps, formulae and casks, in declaration order."""

    taps: tuple[str, ...] = ()
    formulas: tuple[FormulaEntry, ...] = ()
    casks: tuple[str, ...] = ()

    @property
    def formula_names(self) -> list[str]:
        return [f.name for f in self.formulas]


def short_hostname() -> str:
    """Host name up to the first dot."""
    return socket.gethostname().split('.')[0]


def flatten_names(names) -> list[str]:
    """Flatten nested lists/tuples of host names into a flat list."""
    if not isinstance(names, (list, tuple)):
        return [str(names)]
    flat = []
    for name in names:
        flat.extend(flatten_names(name))
    return flat


class ManifestBuilder:
    """Accumulates declarations; host blocks share the same builder."""

    def __init__(self, hostname: str | None = None):
        self.hostname = hostname if hostname is not None else short_hostname()
        self._taps: list[str] = []
        self._formulas: dict[str, tuple[str, ...]] = {}
        self._casks: list[str] = []

    def tap(self, name: str):
        if name not in self._taps:
            self._taps.append(name)

    def brew(self, name: str, args: Iterable[str] = ()):
        # Last declaration wins for args; dict keeps the first position.
        self._formulas[name] = tuple(args)

    def cask(self, token: str):
        if token not in self._casks:
            self._casks.append(token)

    def host(self, names, block: Callable[['ManifestBuilder'], None]) -> bool:
        """Evaluate block only when this machine's short name is in names."""
        if self.hostname not in flatten_names(names):
            return False
        block(self)
        return True

    def build(self) -> Manifest:
        return Manifest(
            taps=tuple(self._taps),
            formulas=tuple(FormulaEntry(name, args) for name, args in self._formulas.items()),
            casks=tuple(self._casks),
        )


def _as_list(value, key: str) -> list:
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        return [value]
    if isinstance(value, list):
        return value
    raise ConfigError(f'"{key}" must be a name or a list, got {type(value).__name__}')


def _pick(data: dict, *keys: str):
    for key in keys:
        if key in data:
            return data[key]
    return None


def _parse_brew(item) -> tuple[str, list[str]]:
    if isinstance(item, str):
        return item, []
    if isinstance(item, dict) and item.get('name'):
        args = item.get('args') or []
        if isinstance(args, str):
            args = args.split()
        if not isinstance(args, list):
            raise ConfigError(f'Invalid args for {item["name"]}: {args!r}')
        return str(item['name']), [str(a) for a in args]
    raise ConfigError(f'Invalid brew entry: {item!r}')


def apply_declarations(builder: ManifestBuilder, data: dict):
    """Feed one manifest mapping (top level or host block) into builder."""
    if not isinstance(data, dict):
        raise ConfigError(f'Manifest section must be a mapping, got {type(data).__name__}')

    for name in _as_list(_pick(data, 'tap', 'taps'), 'tap'):
        if not isinstance(name, str):
            raise ConfigError(f'Invalid tap entry: {name!r}')
        builder.tap(name)

    for item in _as_list(_pick(data, 'brew', 'brews'), 'brew'):
        name, args = _parse_brew(item)
        builder.brew(name, args)

    for token in _as_list(_pick(data, 'cask', 'casks'), 'cask'):
        if not isinstance(token, str):
            raise ConfigError(f'Invalid cask entry: {token!r}')
        builder.cask(token)

    for block in _as_list(_pick(data, 'host', 'hosts'), 'host'):
        if not isinstance(block, dict) or not block.get('names'):
            raise ConfigError(f'Host block needs "names": {block!r}')
        builder.host(block['names'], lambda b, block=block: apply_declarations(b, block))


def parse_manifest(data: dict | None, hostname: str | None = None) -> Manifest:
    """Build a Manifest from already-loaded YAML data."""
    builder = ManifestBuilder(hostname)
    apply_declarations(builder, data or {})
    return builder.build()
