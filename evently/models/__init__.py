# evently/models/__init__.py
# Importing every model here registers it on Base.metadata for create_all
# and Alembic autogenerate.

from .user import User
from .event import Event
from .attendance import Attendance
