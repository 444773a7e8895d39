from .identity import Base, User, PasswordReset, new_id  # noqa: F401
from .order import Order, TableConfig  # noqa: F401
from .mail import MailMessage  # noqa: F401
from .audit import AuditLog  # noqa: F401
