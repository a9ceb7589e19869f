"""Admin console services: user directory and mailbox."""

from src.admin.messages import Mailbox
from src.admin.users import INVITED_USER_NAME, UserDirectory

__all__ = ["INVITED_USER_NAME", "Mailbox", "UserDirectory"]
