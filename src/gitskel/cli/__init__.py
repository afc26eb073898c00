"""gitskel CLI: keep a repository in sync with a skeleton repository."""

from ._helpers import main  # noqa: F401  entry point

# Import command modules to register Click commands with the main group.
from . import _commands  # noqa: F401
