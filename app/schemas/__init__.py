# ruff: noqa: F403, F401
"""Schemas package initialization."""

from .analytics import *
from .base import *
from .download import *
from .file import *
from .sharing import *
from .user import *
