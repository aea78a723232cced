from .attendance_record import AttendanceRecord
from .inbound_event import EventKind, InboundEvent, WebhookPayload
from .office import Office
from .staff import ClockAction, PendingRequest, StaffMember, StaffSnapshot
