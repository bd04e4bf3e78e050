"""Workers shipped with the orchestrator. Each module runs with ``python -m``."""
