"""Submit gWasm tasks to a Golem node, track their progress and collect outputs."""

__version__ = "0.3.0"
