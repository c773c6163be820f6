"""Main CLI application using Cyclopts."""

import cyclopts

from resobooru import __version__
from resobooru.cli.commands import categories, migrate, run

app = cyclopts.App(
    name="resobooru",
    help="Import Resonite screenshots into an Oxibooru board",
    version=__version__,
)

app.command(run.app, name="run")
app.command(categories.app, name="categories")
app.command(migrate.app, name="migrate")
