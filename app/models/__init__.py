from .alerts import Alert, AlertAcknowledgment, AlertAssistance, HazardConfirmation
from .analytics import DailyAnalytics, UserStatistics
from .audit_trail import AuditTrail
from .outbound_messages import OutboundMessage
from .users import EmergencyContact, User
from .weather_snapshots import WeatherSnapshot

from app.db.base_class import Base


__all__ = [
    "Alert",
    "AlertAcknowledgment",
    "AlertAssistance",
    "HazardConfirmation",
    "DailyAnalytics",
    "UserStatistics",
    "AuditTrail",
    "OutboundMessage",
    "EmergencyContact",
    "User",
    "WeatherSnapshot",
    "Base",
]
