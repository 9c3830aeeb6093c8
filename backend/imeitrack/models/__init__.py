from .auth import User, SessionToken
from .inventory import Brand, ImeiRecord, SoldRecord
from .activity import ActivityLog

__all__ = [
    'User', 'SessionToken',
    'Brand', 'ImeiRecord', 'SoldRecord',
    'ActivityLog',
]
