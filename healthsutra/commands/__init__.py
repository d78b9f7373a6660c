"""CLI command implementations (``run_*`` functions returning an exit code)."""
