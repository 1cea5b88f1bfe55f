# SQLModel definitions, imported here so the metadata is populated for Alembic.
from .authentication import Authentication, UserAuthentication  # noqa: F401
from .invoice import Invoice  # noqa: F401
from .links import OrgInvoice, OrgReport, UserInvoice, UserReport  # noqa: F401
from .organization import Org  # noqa: F401
from .report import Report  # noqa: F401
from .user import User  # noqa: F401
from .user_org import OrgUser  # noqa: F401
