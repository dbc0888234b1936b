# Compatibility tool install/uninstall queue
from .tasks import InstallRequest, Task, TaskStatus, TaskType, UninstallRequest
from .wine_cask import WineCask

__all__ = [
    'InstallRequest',
    'Task',
    'TaskStatus',
    'TaskType',
    'UninstallRequest',
    'WineCask',
]
