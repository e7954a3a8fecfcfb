"""
Pydantic models for citizen reports.
These models handle validation for report submission, status changes and responses.
"""

from pydantic import BaseModel, Field, computed_field
from datetime import datetime
from typing import Any, Dict, List, Optional
from enum import Enum

from civic_triage.models.trust import LedgerState, TrustLevel


class ReportStatus(str, Enum):
    """Report status vocabulary."""
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CANCELLED = "Cancelled"
    INVALID = "Invalid"
    MANUAL_REVIEW = "Manual Review"


class ActorRole(str, Enum):
    """Who is acting on a report."""
    CITIZEN = "CITIZEN"
    STAFF = "STAFF"
    ADMIN = "ADMIN"


class ReportCreate(BaseModel):
    """
    Model for creating a new report (incoming POST request).
    citizen_id is omitted for anonymous submissions.
    """
    title: str = Field(..., min_length=3, max_length=200, description="Short summary of the complaint")
    description: str = Field(..., min_length=5, max_length=2000, description="What the citizen observed")
    category: str = Field(..., min_length=1, max_length=100, description="Service category / department code")
    urgency: str = Field(default="Regular", max_length=50, description="Urgency level")
    location_address: Optional[str] = Field(None, max_length=500, description="Street address")
    location_landmark: Optional[str] = Field(None, max_length=200, description="Nearby landmark")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    citizen_id: Optional[str] = Field(None, description="Submitting citizen (None for anonymous)")
    evidence_urls: List[str] = Field(default_factory=list, description="Uploaded photo/video URLs")

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Broken streetlight",
                "description": "The streetlight outside building 12 has been out for a week.",
                "category": "ENGINEERING",
                "urgency": "Regular",
                "location_address": "12 Ayala Avenue",
                "citizen_id": "c-1024",
                "evidence_urls": ["https://example.com/photo.jpg"],
            }
        }
        extra = "ignore"


class ReportRecord(BaseModel):
    """
    A stored report as seen by the triage core.
    The ledger is kept as one enum; the legacy boolean flags are derived from it.
    """
    id: str = Field(..., description="Report document ID")
    tracking_id: str
    citizen_id: Optional[str] = None
    title: str
    description: str
    category: str
    urgency: str = "Regular"
    location_address: Optional[str] = None
    location_landmark: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    evidence_urls: List[str] = Field(default_factory=list)
    status: str = ReportStatus.PENDING.value
    requires_manual_review: bool = False
    trust_ledger: LedgerState = LedgerState.NONE
    status_history: List[Dict[str, Any]] = Field(default_factory=list, description="Status transition history")
    created_at: datetime
    resolved_at: Optional[datetime] = None

    @computed_field
    @property
    def trust_credit_applied(self) -> bool:
        return self.trust_ledger.credit_applied

    @computed_field
    @property
    def trust_penalty_applied(self) -> bool:
        return self.trust_ledger.penalty_applied


class StatusUpdateRequest(BaseModel):
    """Request to change report status."""
    status: str = Field(..., min_length=1, max_length=50, description="New status (case-insensitive)")
    actor_role: ActorRole = Field(..., description="Role of the acting user")
    actor_id: str = Field(..., description="Acting user identifier")
    actor_name: Optional[str] = Field(None, max_length=100, description="Display name for notifications")
    remarks: Optional[str] = Field(None, max_length=1000, description="Optional note explaining the change")


class ReportActionRequest(BaseModel):
    """Combined action: a status change, a message, or both."""
    actor_role: ActorRole
    actor_id: str
    actor_name: Optional[str] = Field(None, max_length=100)
    status: Optional[str] = Field(None, max_length=50, description="Optional new status")
    message: Optional[str] = Field(None, max_length=1000, description="Optional response to the citizen")


class SubmissionAccepted(BaseModel):
    """Response for an admitted report."""
    accepted: bool = True
    report_id: str
    tracking_id: str
    status: str
    manual_review: bool
    trust_level: Optional[TrustLevel] = Field(None, description="None for anonymous submissions")
    daily_limit: Optional[int] = Field(None, description="None means unlimited")
    submitted_today: Optional[int] = Field(None, description="Reports in the last 24h including this one")


class SubmissionRejected(BaseModel):
    """Response for a rejected submission."""
    accepted: bool = False
    reason: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class TransitionResponse(BaseModel):
    """Result of a status change or staff response."""
    ok: bool = True
    report_id: str
    previous_status: Optional[str] = None
    status: str
    trust_delta: int = 0
    trust_ledger: LedgerState
    trust_score: Optional[float] = Field(None, description="Owning citizen's score after the change")
