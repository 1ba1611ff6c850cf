"""CLI commands for Lectern.

Provides command-line interface using Typer:
- lectern plan: Show the cache scopes an event would evict
- lectern invalidate: Run one invalidation event against the cache
- lectern replay: Run a file of events through the batch processor
- lectern stats: Count the keys in the analytics cache

Usage:
    lectern --help
    lectern plan course.published --course-id c1
    lectern invalidate user.deleted --user-id u1
    lectern replay events.jsonl
    lectern stats
"""

import typer

from lectern.cli.invalidate_cmd import app as invalidate_app
from lectern.cli.plan_cmd import app as plan_app
from lectern.cli.replay_cmd import app as replay_app
from lectern.cli.stats_cmd import app as stats_app

# Main CLI application
app = typer.Typer(
    name="lectern",
    help="Lectern: analytics cache invalidation for the LMS",
    no_args_is_help=True,
)

# Add subcommands
app.add_typer(plan_app, name="plan")
app.add_typer(invalidate_app, name="invalidate")
app.add_typer(replay_app, name="replay")
app.add_typer(stats_app, name="stats")


@app.callback()
def callback() -> None:
    """Lectern: analytics cache invalidation for the LMS."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
