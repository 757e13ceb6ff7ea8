from .settings import settings, ProjectSettings
from .logging import init_logging

__all__ = ["settings", "ProjectSettings", "init_logging"]
