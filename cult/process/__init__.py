"""External process execution with concurrent stream relays."""

from cult.process.runner import ProcessResult, run_process

__all__ = ["ProcessResult", "run_process"]
