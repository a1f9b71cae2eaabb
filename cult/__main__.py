"""Allow ``python -m cult``."""

from cult.cli import app

app(prog_name="cult")
