"""
Host Facts Toolkit — point-in-time facts about the local operating system.
"""

__app_name__ = "Host Facts Toolkit"
__version__ = "1.0.0"

from hostfacts.core.collection import GrowableCollection  # noqa: E402
from hostfacts.core.errors import ErrorKind, FactError, FactResult, strerror  # noqa: E402
from hostfacts.core.session import Session  # noqa: E402

__all__ = [
    "__app_name__",
    "__version__",
    "ErrorKind",
    "FactError",
    "FactResult",
    "GrowableCollection",
    "Session",
    "strerror",
]
