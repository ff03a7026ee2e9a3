# nextlevel/schemas/__init__.py
"""
Schema module initialization.
Exports all schema classes from submodules for convenient imports.
"""
from .auth import *
from .user import *
from .profile import *
from .activity_log import *
from .notification import *
