import shlex
from collections.abc import Callable

from rich.markup import escape

from brewcook import brew
from brewcook.errors import BackendInvocationError
from brewcook.output import added, error, header, info, plain, removed, success, warning
from brewcook.plan import Action, ActionKind, Plan, Report

DRY_RUN_BANNER = '# NOT executing. Run with --yes to execute:'

GROUP_TITLES = {
    ActionKind.TAP_ADD: 'Adding taps:',
    ActionKind.CASK_ADD: 'Installing casks:',
    ActionKind.FORMULA_ADD: 'Installing formulae:',
    ActionKind.FORMULA_REMOVE: 'Removing formulae:',
    ActionKind.CASK_REMOVE: 'Removing casks:',
    ActionKind.TAP_REMOVE: 'Removing taps:',
}

ADDITIONS = {ActionKind.TAP_ADD, ActionKind.CASK_ADD, ActionKind.FORMULA_ADD}

REPORT_FIELDS = [
    'installed',
    'leaves',
    'desired',
    'deps',
    'deps_current',
    'deps_after',
    'deps_added',
    'deps_orphaned',
    'pkgs_add',
    'pkgs_remove',
    'casks_add',
    'casks_remove',
    'taps_add',
    'taps_remove',
]


def dump_report(report: Report):
    """Print every intermediate set of the diff."""
    for name in REPORT_FIELDS:
        values = sorted(getattr(report, name))
        header(f'{name} ({len(values)}):')
        for value in values:
            info(f'  {value}')

    if report.built_with:
        header('built with:')
        for dependent, dep in sorted(report.built_with):
            info(f'  {dependent} => {dep}')


def print_plan(plan: Plan):
    """Summarise the plan group by group."""
    for kind, actions in plan.groups():
        header(GROUP_TITLES[kind])
        for action in actions:
            if kind in ADDITIONS:
                added(escape(action.target))
            else:
                removed(escape(action.target))


class ActionExecutor:
    """Runs a plan through the backend, or prints it in dry-run mode."""

    def __init__(
        self,
        dry_run: bool = True,
        verbose: bool = False,
        debug: bool = False,
        stop_on_error: bool = False,
        executable: str = 'brew',
        invoke: Callable[[list[str], bool], int] | None = None,
    ):
        self.dry_run = dry_run
        self.verbose = verbose
        self.debug = debug
        self.stop_on_error = stop_on_error
        self.executable = executable
        self.invoke = invoke or brew.invoke
        self.warned = False

    def command(self, action: Action) -> str:
        return shlex.join(action.argv(self.executable))

    def run_action(self, action: Action) -> bool:
        cmd = self.command(action)
        if self.dry_run:
            if not self.warned:
                plain(DRY_RUN_BANNER)
                self.warned = True
            plain(cmd)
            return True

        info(f'[bold]==>[/bold] {escape(cmd)}')
        argv = action.argv(self.executable)
        returncode = self.invoke(argv, self.debug)
        if returncode == 0:
            return True
        if self.stop_on_error:
            raise BackendInvocationError(argv, returncode)
        error(f'Failed ({returncode}): {escape(cmd)}')
        return False

    def execute(self, plan: Plan) -> list[Action]:
        """Run every action in plan order. Returns the failed actions."""
        if self.verbose:
            dump_report(plan.report)

        if plan.is_empty:
            success('System is in sync')
            return []

        if not self.dry_run:
            print_plan(plan)

        failed = [action for action in plan.actions if not self.run_action(action)]

        if failed:
            warning(f'{len(failed)} of {len(plan.actions)} actions failed')
        elif not self.dry_run:
            success('Cook complete')
        return failed
