"""Tests for the brew backend adapter and snapshot acquisition."""
import json
import subprocess
import sys

import pytest

from brewcook import brew, snapshot as snapshot_mod
from brewcook.errors import BackendError
from brewcook.graph import DependencyKind, Formula, Tab
from brewcook.snapshot import load_snapshot

FFMPEG = {
    'name': 'ffmpeg',
    'full_name': 'ffmpeg',
    'aliases': ['ffmpeg-full'],
    'dependencies': ['x264', 'lame'],
    'recommended_dependencies': ['sdl2'],
    'optional_dependencies': ['fdk-aac'],
    'build_dependencies': ['pkg-config'],
    'installed': [{'version': '6.0', 'used_options': ['--with-fdk-aac']}],
}


UNKNOWN = 'Error: No available formula with the name "nope".\n'


class FakeRun:
    """Stand-in for subprocess.run keyed on the argv after the executable."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []
        self.envs = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(cmd)
        self.envs.append(kwargs.get('env'))
        returncode, stdout, stderr = self.responses.get(tuple(cmd[1:]), (1, '', UNKNOWN))
        return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)


class TestParseFormula:
    def test_edges_and_tab(self):
        formula = brew.parse_formula(FFMPEG)

        assert formula.name == 'ffmpeg'
        assert formula.aliases == ('ffmpeg-full',)
        kinds = {d.name: d.kind for d in formula.deps}
        assert kinds == {
            'x264': DependencyKind.REQUIRED,
            'lame': DependencyKind.REQUIRED,
            'sdl2': DependencyKind.RECOMMENDED,
            'fdk-aac': DependencyKind.OPTIONAL,
            'pkg-config': DependencyKind.BUILD,
        }
        assert formula.tab == Tab(frozenset({'with-fdk-aac'}))

    def test_uninstalled_has_no_tab(self):
        formula = brew.parse_formula({'name': 'jq', 'full_name': 'jq', 'installed': []})
        assert formula.tab is None
        assert formula.deps == ()

    def test_full_name_is_identity(self):
        formula = brew.parse_formula({'name': 'foo', 'full_name': 'user/tap/foo'})
        assert formula == Formula('user/tap/foo')


class TestQueries:
    def test_installed_formulae(self, monkeypatch):
        fake = FakeRun({('info', '--json=v2', '--installed'): (0, json.dumps({'formulae': [FFMPEG]}), '')})
        monkeypatch.setattr(brew.subprocess, 'run', fake)

        formulae = brew.installed_formulae()
        assert [f.name for f in formulae] == ['ffmpeg']

    def test_query_failure_raises(self, monkeypatch):
        monkeypatch.setattr(brew.subprocess, 'run', FakeRun({}))
        with pytest.raises(BackendError):
            brew.installed_formulae()

    def test_missing_executable_raises(self, monkeypatch):
        def boom(cmd, **kwargs):
            raise FileNotFoundError(2, 'No such file or directory')

        monkeypatch.setattr(brew.subprocess, 'run', boom)
        with pytest.raises(BackendError, match='Cannot run'):
            brew.installed_taps()

    def test_garbage_json_raises(self, monkeypatch):
        fake = FakeRun({('info', '--json=v2', '--installed'): (0, 'not json', '')})
        monkeypatch.setattr(brew.subprocess, 'run', fake)
        with pytest.raises(BackendError, match='Unparseable'):
            brew.installed_formulae()

    def test_formula_info_unknown_is_none(self, monkeypatch):
        monkeypatch.setattr(brew.subprocess, 'run', FakeRun({}))
        assert brew.formula_info('nope') is None

    def test_formula_info_other_failures_propagate(self, monkeypatch):
        """A failing lookup is not the same as an unknown name."""
        fake = FakeRun({
            ('info', '--json=v2', '--formula', 'jq'): (1, '', 'Error: Failure while executing; `curl` exited with 28.\n'),
        })
        monkeypatch.setattr(brew.subprocess, 'run', fake)

        with pytest.raises(BackendError) as exc:
            brew.formula_info('jq')
        assert 'curl' in exc.value.stderr

    def test_debug_reaches_queries(self, monkeypatch):
        fake = FakeRun({('tap',): (0, '', '')})
        monkeypatch.setattr(brew.subprocess, 'run', fake)

        brew.installed_taps(debug=True)
        brew.installed_taps()
        assert fake.envs[0]['HOMEBREW_DEBUG'] == '1'
        assert fake.envs[1] is None

    def test_casks_and_taps(self, monkeypatch):
        fake = FakeRun({
            ('list', '--cask', '-1'): (0, 'firefox\nslack\n', ''),
            ('tap',): (0, 'homebrew/cask-fonts\n\n', ''),
        })
        monkeypatch.setattr(brew.subprocess, 'run', fake)
        assert brew.installed_casks() == ['firefox', 'slack']
        assert brew.installed_taps() == ['homebrew/cask-fonts']

    def test_custom_executable(self, monkeypatch):
        fake = FakeRun({('tap',): (0, '', '')})
        monkeypatch.setattr(brew.subprocess, 'run', fake)
        brew.installed_taps('/opt/homebrew/bin/brew')
        assert fake.calls == [['/opt/homebrew/bin/brew', 'tap']]


class TestInvoke:
    def test_debug_sets_homebrew_debug(self, monkeypatch):
        seen = {}

        def run(argv, env=None):
            seen['env'] = env
            return subprocess.CompletedProcess(argv, 3)

        monkeypatch.setattr(brew.subprocess, 'run', run)
        assert brew.invoke(['brew', 'tap', 'x'], debug=True) == 3
        assert seen['env']['HOMEBREW_DEBUG'] == '1'

        brew.invoke(['brew', 'tap', 'x'])
        assert seen['env'] is None


class TestLoadSnapshot:
    def test_queries_installed_wanted_casks_and_taps(self, monkeypatch, capsys):
        jq = {'name': 'jq', 'full_name': 'jq', 'dependencies': ['oniguruma'], 'installed': []}
        fake = FakeRun({
            ('info', '--json=v2', '--installed'): (0, json.dumps({'formulae': [FFMPEG]}), ''),
            ('info', '--json=v2', '--formula', 'jq'): (0, json.dumps({'formulae': [jq]}), ''),
            ('list', '--cask', '-1'): (0, 'firefox\n', 'Warning: Cask handbrake has a bad license\n'),
            ('tap',): (0, 'homebrew/core\n', ''),
        })
        monkeypatch.setattr(brew.subprocess, 'run', fake)

        snap = load_snapshot(['ffmpeg-full', 'jq', 'nope'])

        assert [f.name for f in snap.installed] == ['ffmpeg']
        assert snap.resolve('ffmpeg-full').name == 'ffmpeg'
        assert snap.resolve('jq').tab is None
        assert snap.resolve('nope') is None
        assert snap.casks == ('firefox',)
        assert snap.taps == ('homebrew/core',)
        # ffmpeg-full resolved locally; only unknown names are looked up
        assert ['brew', 'info', '--json=v2', '--formula', 'ffmpeg-full'] not in fake.calls
        assert 'bad license' not in capsys.readouterr().err

    def test_capture_is_scoped_to_cask_query(self, monkeypatch):
        streams = []

        def taps(executable='brew', debug=False):
            streams.append(sys.stdout)
            return []

        monkeypatch.setattr(snapshot_mod.brew, 'installed_formulae', lambda executable='brew', debug=False: [])
        monkeypatch.setattr(snapshot_mod.brew, 'installed_casks', lambda executable='brew', debug=False: [])
        monkeypatch.setattr(snapshot_mod.brew, 'installed_taps', taps)
        before = sys.stdout
        load_snapshot()
        assert streams == [before]
