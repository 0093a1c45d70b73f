from .db import db
from .audit_log import AuditLog
from .court import Court
from .court_schedule import CourtSchedule
from .slot import Slot
from .booking import Booking
from .cancellation_request import CancellationRequest
from .custom_message import CustomMessage
