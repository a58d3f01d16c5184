"""Allow ``python -m querygovernor``."""

from querygovernor.cli.main import app

app()
