"""lumina-tasks: a single-user task list with AI-assisted parsing, breakdown and insights."""

__version__ = "0.1.0"
