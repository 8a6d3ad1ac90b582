"""Concurrency — tracking of detached population tasks."""

from mediacache.concurrency.background import BackgroundTasks

__all__ = ["BackgroundTasks"]
