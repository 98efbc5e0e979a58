from . import auth
from . import users
from . import follows
from . import projects
from . import files
from . import stats
from . import maintenance

__all__ = [
    "auth",
    "users",
    "follows",
    "projects",
    "files",
    "stats",
    "maintenance",
]
