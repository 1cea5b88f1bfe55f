from enum import Enum, IntEnum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Role(IntEnum):
    """Membership level within an organization. Compared ordinally."""
    CLIENT = 1
    EMPLOYEE = 2
    ADMIN = 3
    OWNER = 4


class ResourceType(str, Enum):
    INVOICE = "invoice"
    REPORT = "report"


class OrgCreationPolicy(str, Enum):
    # Only users without any membership may bootstrap an org
    UNAFFILIATED = "unaffiliated"
    # Users who do not already own an org may create one
    NON_OWNER = "non-owner"


class SuccessResponse(BaseModel, Generic[T]):
    message: str
    data: Optional[T] = None


class ErrorResponse(BaseModel):
    message: str
    code: int
