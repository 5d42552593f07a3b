"""Filesystem maintenance for recording directories."""

from .cleanup import CleanupSweeper

__all__ = ['CleanupSweeper']
