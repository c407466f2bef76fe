"""
Pydantic models for persisted land-claim records.

Geometry fields are GeoJSON dicts. Conversion to and from PostGIS happens in
the store layer using ST_GeomFromGeoJSON / ST_AsGeoJSON; these models carry
no PostGIS dependencies.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enumerations (values are the database enum labels)
# =============================================================================


class SubmissionStatus(str, Enum):
    """Lifecycle status of a submission."""

    RECORDED = "SPPTG terdata"
    REGISTERED = "SPPTG terdaftar"
    REJECTED = "SPPTG ditolak"
    UNDER_REVIEW = "SPPTG ditinjau ulang"
    ISSUED = "Terbit SPPTG"


INITIAL_STATUS = SubmissionStatus.RECORDED

# Statuses whose boundaries count as existing claims in overlap previews
ACTIVE_CLAIM_STATUSES = (SubmissionStatus.RECORDED, SubmissionStatus.REGISTERED)


class ProhibitedAreaType(str, Enum):
    """Category of a prohibited zone."""

    PROTECTED_FOREST = "Hutan Lindung"
    GOVERNMENT_LAND = "Tanah Pemerintah"
    NATURE_RESERVE = "Cagar Alam"
    INDUSTRIAL_ZONE = "Kawasan Industri"
    PUBLIC_FACILITY = "Fasum/Fasos"
    RIVER_BORDER = "Sempadan Sungai"
    COASTAL_BORDER = "Sempadan Pantai"
    DISASTER_PRONE = "Kawasan Rawan Bencana"
    MILITARY_POLICE_ASSET = "Aset TNI/POLRI"
    OTHER = "Lainnya"


class UserRole(str, Enum):
    """Roles issued by the access layer."""

    SUPERADMIN = "Superadmin"
    ADMIN = "Admin"
    VERIFIER = "Verifikator"
    VIEWER = "Viewer"


@dataclass(frozen=True)
class ActingUser:
    """
    Identity of the caller, resolved by the access layer.

    Attributes:
        id: User id.
        name: Display name, recorded in logs.
        role: Role granted to the user.
    """

    id: int
    name: str
    role: UserRole = UserRole.VIEWER


# =============================================================================
# Records
# =============================================================================


class ProhibitedArea(BaseModel):
    """A registered zone that submissions must not overlap.

    Corresponds to a row in the ``prohibited_areas`` table.
    """

    id: Optional[int] = Field(default=None, description="Row id (None before insert)")
    nama_kawasan: str = Field(..., max_length=255, description="Zone name")
    jenis_kawasan: ProhibitedAreaType = Field(..., description="Zone category")
    sumber_data: str = Field(..., max_length=255, description="Data source")
    dasar_hukum: Optional[str] = Field(default=None, description="Legal basis")
    geometry: Dict[str, Any] = Field(..., description="Zone boundary as GeoJSON Polygon")
    aktif_di_validasi: bool = Field(
        default=True, description="Whether the zone participates in overlap checks"
    )


class Submission(BaseModel):
    """A finalized land claim.

    Corresponds to a row in the ``submissions`` table.
    """

    id: int
    owner_id: int
    nama_pemilik: str
    nik: str
    alamat: str = ""
    nomor_hp: str = ""
    email: str = ""
    village_id: Optional[int] = None
    kecamatan: str = ""
    kabupaten: str = ""
    luas: float = Field(..., description="Land area in square metres")
    penggunaan_lahan: str = ""
    catatan: Optional[str] = None
    geo_json: Dict[str, Any] = Field(..., description="Boundary as GeoJSON Polygon")
    status: SubmissionStatus
    verifikator: Optional[int] = None
    created_at: datetime


class StatusHistoryEntry(BaseModel):
    """One append-only row of a submission's status log."""

    id: Optional[int] = None
    submission_id: int
    status_before: Optional[SubmissionStatus] = Field(
        default=None, description="None for the creation entry"
    )
    status_after: SubmissionStatus
    actor_id: int
    reason: Optional[str] = None
    feedback: Optional[Dict[str, Any]] = None
    recorded_at: Optional[datetime] = None


class SubmissionDocument(BaseModel):
    """A document reference owned by a draft or a submission."""

    id: int
    draft_id: Optional[int] = None
    submission_id: Optional[int] = None
    filename: str
    category: str
    is_temporary: bool = True
