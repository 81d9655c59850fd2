"""brewcook - converge installed Homebrew packages to a declarative manifest."""

__version__ = '0.1.0'
