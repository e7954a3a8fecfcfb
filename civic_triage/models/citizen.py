"""
Citizen models.
The account subsystem owns citizens; the triage core only reads them and
writes the trust score.
"""

from pydantic import BaseModel, Field


class CitizenSnapshot(BaseModel):
    """Read-only view of a citizen at admission time."""
    id: str = Field(..., description="Citizen document ID")
    is_verified: bool = Field(default=False, description="Whether the account has been verified")
    trust_score: float = Field(default=0, description="Signed reputation value")
    lifetime_report_count: int = Field(default=0, ge=0, description="Reports ever submitted; stores may cap this at 1")
    reports_last_24h: int = Field(default=0, ge=0, description="Reports submitted in the rolling 24-hour window")
    full_name: str = Field(default="", description="Display name used in notifications")
