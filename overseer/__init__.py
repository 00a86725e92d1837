"""Asyncio building blocks for supervised tasks: task specs, notifiers, restart tolerance, cleanup."""

__version__ = "0.1.0"
__all__ = ["cleanup", "notifier", "restart_manager", "task", "task_types"]