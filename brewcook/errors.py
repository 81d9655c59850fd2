class CookError(Exception):
    """Base class for errors that abort a run."""


class ConfigError(CookError):
    """Manifest or config file is missing, unreadable or malformed."""


class ResolutionError(CookError):
    """Manifest names a formula the package database does not know."""

    def __init__(self, names: list[str]):
        self.names = names
        super().__init__(f'Unknown formula: {", ".join(names)}')


class BackendError(CookError):
    """A backend query failed or returned output we cannot parse."""

    def __init__(self, message: str, stderr: str = ''):
        self.stderr = stderr
        super().__init__(message)


class BackendInvocationError(BackendError):
    """A backend command exited non-zero."""

    def __init__(self, argv: list[str], returncode: int):
        self.argv = argv
        self.returncode = returncode
        super().__init__(f'Command failed ({returncode}): {" ".join(argv)}')
