"""
Worker roles.

- base.py: the shared sweep loop (SweepWorker)
- responder.py: runs pending tasks through the compute sandbox
- updater.py: generates item titles/descriptions with a language model
"""

from .base import SweepWorker
from .responder import Responder
from .updater import Updater

__all__ = ["Responder", "SweepWorker", "Updater"]
