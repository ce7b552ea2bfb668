"""Wake-and-run: wake a remote host, run a task on it, shut it down again."""

__version__ = "0.1.0"
