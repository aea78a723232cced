from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict


# Enum Limiting Clock Actions to Just Two Vals
class ClockAction(str, Enum):
    CLOCK_IN = "clock in"
    CLOCK_OUT = "clock out"


# Roster Entry Resolved From the Sender's Phone Number
class StaffMember(BaseModel):
    model_config = ConfigDict(frozen=True)

    phone_number: str
    display_name: str
    department: str = ""
    allowed_offices: FrozenSet[str] = frozenset()


# What We Remember About the Staff Member When the Command Arrives
class StaffSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    department: str = ""
    allowed_offices: FrozenSet[str] = frozenset()

    @classmethod
    def from_staff(cls, staff: StaffMember) -> "StaffSnapshot":
        return cls(
            name=staff.display_name,
            department=staff.department,
            allowed_offices=staff.allowed_offices,
        )


# Outstanding "Awaiting Location" Step of the Conversation
class PendingRequest(BaseModel):
    phone_number: str
    action: ClockAction
    staff_snapshot: StaffSnapshot
    created_at: datetime
    expires_at: Optional[datetime] = None
