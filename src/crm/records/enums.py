"""Closed categorical value sets for CRM records.

Values are the storage form. Display form is derived (underscores become
spaces), so the mapping between the two is total and bidirectional.
"""

from __future__ import annotations

from src.crm.records.normalizer import CrmEnum

# ── Accounts ────────────────────────────────────────────────────────────────


class AccountRating(CrmEnum):
    PLATINUM = "PLATINUM"
    GOLD = "GOLD"
    SILVER = "SILVER"
    BRONZE = "BRONZE"


class AccountStatus(CrmEnum):
    SUSPECT = "SUSPECT"
    PROSPECT = "PROSPECT"
    ACTIVE_DEAL = "ACTIVE_DEAL"
    CUSTOMER = "CUSTOMER"
    PARTNER = "PARTNER"
    DO_NOT_CALL = "DO_NOT_CALL"


class EmployeeCount(CrmEnum):
    """Head-count buckets shown in the account form."""

    TINY = "1-10"
    SMALL = "10-50"
    MEDIUM = "50-100"
    LARGE = "100-500"
    XLARGE = "500+"
    ENTERPRISE = "1000+"


class Geo(CrmEnum):
    NORTH_AMERICA = "NORTH_AMERICA"
    LATIN_AMERICA = "LATIN_AMERICA"
    EMEA = "EMEA"
    MIDDLE_EAST = "MIDDLE_EAST"
    INDIA = "INDIA"
    APAC = "APAC"


# ── Contacts & Leads ────────────────────────────────────────────────────────


class ContactSource(CrmEnum):
    WEBSITE = "WEBSITE"
    REFERRAL = "REFERRAL"
    COLD_CALL = "COLD_CALL"
    EMAIL_CAMPAIGN = "EMAIL_CAMPAIGN"
    SOCIAL_MEDIA = "SOCIAL_MEDIA"
    TRADE_SHOW = "TRADE_SHOW"
    DATA_RESEARCH = "DATA_RESEARCH"
    PARTNER = "PARTNER"
    OTHER = "OTHER"


class ContactStatus(CrmEnum):
    SUSPECT = "SUSPECT"
    PROSPECT = "PROSPECT"
    ACTIVE_DEAL = "ACTIVE_DEAL"
    CUSTOMER = "CUSTOMER"
    INACTIVE = "INACTIVE"
    DO_NOT_CALL = "DO_NOT_CALL"


# Leads come in through the same channels as contacts
LeadSource = ContactSource


class LeadStatus(CrmEnum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    NURTURING = "NURTURING"
    UNQUALIFIED = "UNQUALIFIED"
    CONVERTED = "CONVERTED"


class LeadRating(CrmEnum):
    HOT = "HOT"
    WARM = "WARM"
    COLD = "COLD"


# ── Deals ───────────────────────────────────────────────────────────────────


class BusinessLine(CrmEnum):
    PRODUCT = "PRODUCT"
    PROFESSIONAL_SERVICES = "PROFESSIONAL_SERVICES"
    MANAGED_SERVICES = "MANAGED_SERVICES"
    CONSULTING = "CONSULTING"
    STAFF_AUGMENTATION = "STAFF_AUGMENTATION"
    SUPPORT = "SUPPORT"


class DealStage(CrmEnum):
    QUALIFICATION = "QUALIFICATION"
    NEEDS_ANALYSIS = "NEEDS_ANALYSIS"
    PROPOSAL = "PROPOSAL"
    NEGOTIATION = "NEGOTIATION"
    CLOSED_WON = "CLOSED_WON"
    CLOSED_LOST = "CLOSED_LOST"


class DealEntity(CrmEnum):
    """Contracting legal entity on the seller side."""

    HEADQUARTERS = "HEADQUARTERS"
    US_SUBSIDIARY = "US_SUBSIDIARY"
    UK_SUBSIDIARY = "UK_SUBSIDIARY"
    INDIA_SUBSIDIARY = "INDIA_SUBSIDIARY"


# ── Activities ──────────────────────────────────────────────────────────────


class ActivityType(CrmEnum):
    CALL = "CALL"
    EMAIL = "EMAIL"
    MEETING = "MEETING"
    SMS = "SMS"
    LINKEDIN_MESSAGE = "LINKEDIN_MESSAGE"
    OTHER = "OTHER"


class OutcomeDisposition(CrmEnum):
    CONNECTED = "CONNECTED"
    VOICEMAIL = "VOICEMAIL"
    NO_ANSWER = "NO_ANSWER"
    BUSY = "BUSY"
    WRONG_NUMBER = "WRONG_NUMBER"
    INTERESTED = "INTERESTED"
    NOT_INTERESTED = "NOT_INTERESTED"
    MEETING_SCHEDULED = "MEETING_SCHEDULED"
    FOLLOW_UP_REQUIRED = "FOLLOW_UP_REQUIRED"


# ── Users & Reports ─────────────────────────────────────────────────────────


class UserRole(CrmEnum):
    ADMIN = "ADMIN"
    SALES_MANAGER = "SALES_MANAGER"
    SALES_REP = "SALES_REP"
    MARKETING = "MARKETING"
    SUPPORT = "SUPPORT"
    VIEWER = "VIEWER"


class ReportPeriod(CrmEnum):
    LAST_7_DAYS = "LAST_7_DAYS"
    LAST_30_DAYS = "LAST_30_DAYS"
    LAST_90_DAYS = "LAST_90_DAYS"
    THIS_YEAR = "THIS_YEAR"
    ALL_TIME = "ALL_TIME"
