"""Pydantic domain schemas shared by stores, services and the API"""
from scholarlink.schemas.session import Session, NewSession, SessionStatus, calculate_total_cost
from scholarlink.schemas.user import UserProfile, UserRole, VerificationStatus
from scholarlink.schemas.notification import Notification, NotificationType
from scholarlink.schemas.messaging import Conversation, Message
from scholarlink.schemas.payment import PaymentDetails, BillingAddress
from scholarlink.schemas.reminder import SessionReminder, LeadTime, reminder_identifier

__all__ = [
    "Session",
    "NewSession",
    "SessionStatus",
    "calculate_total_cost",
    "UserProfile",
    "UserRole",
    "VerificationStatus",
    "Notification",
    "NotificationType",
    "Conversation",
    "Message",
    "PaymentDetails",
    "BillingAddress",
    "SessionReminder",
    "LeadTime",
    "reminder_identifier",
]
