# evently/crud/__init__.py

from .crud_attendance import attendance_registry
from .crud_capacity import capacity_ledger
from .crud_event import event
from .crud_user import user
