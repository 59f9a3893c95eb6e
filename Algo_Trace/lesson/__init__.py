"""Lesson files describing a process and the timeline it is bound to."""

from .io import build_process, build_runtime, load_lesson, save_lesson
from .model import LessonModel, TrackSpec

__all__ = [
    "LessonModel",
    "TrackSpec",
    "build_process",
    "build_runtime",
    "load_lesson",
    "save_lesson",
]
