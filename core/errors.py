# Error Taxonomy for the Attendance Conversation
#
# Every error carries the reply sent back to the staff member on WhatsApp.

SYSTEM_ERROR_MESSAGE = "A system error occurred. Please try again later."


class AttendanceBotError(Exception):
    def __init__(self, reply: str):
        super().__init__(reply)
        self.reply = reply


# Unknown phone number, or an office the staff member is not assigned to
class AuthorizationError(AttendanceBotError):
    def __init__(self, reply: str, clear_pending: bool = True):
        super().__init__(reply)
        self.clear_pending = clear_pending


# No pending request, expired request, or a location outside every office
class InboundValidationError(AttendanceBotError):
    def __init__(self, reply: str, clear_pending: bool = False):
        super().__init__(reply)
        self.clear_pending = clear_pending


# Roster / ledger I/O failure
class DependencyError(AttendanceBotError):
    def __init__(self, detail: str):
        super().__init__(SYSTEM_ERROR_MESSAGE)
        self.detail = detail

    def __str__(self) -> str:
        return self.detail
