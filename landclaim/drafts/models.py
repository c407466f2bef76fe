"""
Draft payload models.

A draft is saved one wizard step at a time. Each save is a ``StepUpdate``:
a tagged union on ``current_step`` whose ``payload`` is the typed data for
that step. ``DraftPayload.merge`` folds an update into the accumulated
payload; ``DraftPayload.to_finalizable`` checks the fields a submission
needs before finalization.

Field names are snake_case in Python and camelCase in the stored JSON.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    model_validator,
)
from pydantic.alias_generators import to_camel

from landclaim.boundary.models import GeographicCoordinate
from landclaim.errors import DraftIncomplete
from landclaim.models import SubmissionStatus

PHONE_PATTERN = r"^(\+62|0)[0-9]{9,12}$"
NIK_PATTERN = r"^[0-9]{16}$"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Shared building blocks
# =============================================================================


class UploadedDocument(_CamelModel):
    """Reference to a file uploaded while filling in the draft."""

    name: str = Field(..., min_length=1)
    size: int = Field(..., gt=0)
    url: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    document_id: Optional[int] = Field(default=None, description="submissions_documents row id")


class ResearchTeamMember(_CamelModel):
    """Field team member (surveyor, village officials)."""

    nama: str = Field(..., min_length=2)
    jabatan: str = Field(..., min_length=2)
    instansi: Optional[str] = None
    nomor_hp: str = Field(..., alias="nomorHP", pattern=PHONE_PATTERN)


class BoundaryWitness(_CamelModel):
    """Neighbour witnessing one side of the boundary."""

    id: Optional[str] = None
    nama: str = Field(..., min_length=2)
    sisi: Literal["Utara", "Timur", "Selatan", "Barat"]


class FeedbackData(_CamelModel):
    """Verifier feedback attached to a rejection or review decision."""

    alasan_terpilih: List[str] = Field(..., min_length=1)
    dokumen_tidak_lengkap: Optional[List[str]] = None
    detail_feedback: str = Field(..., min_length=10, max_length=1000)
    tanggal_tenggat: Optional[datetime] = None
    lampiran_feedback: Optional[UploadedDocument] = None
    timestamp: Optional[datetime] = None
    pemberi: str = Field(..., min_length=2)


# =============================================================================
# Per-step data
# =============================================================================


class Step1Data(_CamelModel):
    """Applicant identity, identity documents and consent."""

    nama_pemohon: str = Field(..., min_length=2, max_length=255)
    nik: str = Field(..., pattern=NIK_PATTERN)
    alamat: Optional[str] = None
    nomor_hp: Optional[str] = Field(default=None, alias="nomorHP", pattern=PHONE_PATTERN)
    email: Optional[str] = None
    dokumen_ktp: Optional[UploadedDocument] = Field(default=None, alias="dokumenKTP")
    dokumen_kk: Optional[UploadedDocument] = Field(default=None, alias="dokumenKK")
    dokumen_kwitansi: Optional[UploadedDocument] = None
    dokumen_permohonan: Optional[UploadedDocument] = None
    persetujuan_data: bool


class Step2Data(_CamelModel):
    """Field survey: team, witnesses, boundary and photos."""

    village_id: Optional[int] = None
    kecamatan: Optional[str] = None
    kabupaten: Optional[str] = None
    penggunaan_lahan: Optional[str] = None
    catatan: Optional[str] = None
    juru_ukur: Optional[ResearchTeamMember] = None
    pihak_bpd: Optional[ResearchTeamMember] = Field(default=None, alias="pihakBPD")
    kepala_dusun: Optional[ResearchTeamMember] = None
    rt_setempat: Optional[ResearchTeamMember] = None
    saksi_list: List[BoundaryWitness] = Field(..., min_length=1, max_length=4)
    coordinates_geografis: List[GeographicCoordinate] = Field(
        ..., min_length=3, max_length=100
    )
    luas_lahan: Optional[float] = Field(default=None, gt=0)
    keliling_lahan: Optional[float] = Field(default=None, gt=0)
    dokumen_berita_acara: Optional[UploadedDocument] = None
    dokumen_asal_usul: Optional[UploadedDocument] = None
    dokumen_pernyataan_jual_beli: Optional[UploadedDocument] = None
    dokumen_tidak_sengketa: Optional[UploadedDocument] = None
    foto_lahan: List[UploadedDocument] = Field(..., min_length=1, max_length=10)


class Step3Data(_CamelModel):
    """Verifier decision."""

    status: SubmissionStatus
    verifikator: int
    alasan_status: Optional[str] = Field(default=None, min_length=10, max_length=1000)
    feedback: Optional[FeedbackData] = None

    @model_validator(mode="after")
    def check_decision(self) -> "Step3Data":
        if self.status == SubmissionStatus.ISSUED:
            raise ValueError("Status penerbitan hanya dapat diatur pada langkah 4")
        if self.status in (SubmissionStatus.REJECTED, SubmissionStatus.UNDER_REVIEW):
            if not self.alasan_status or self.feedback is None:
                raise ValueError("Alasan status dan feedback wajib diisi untuk keputusan ini")
        return self


class Step4Data(_CamelModel):
    """Certificate issuance."""

    dokumen_spptg: Optional[UploadedDocument] = Field(default=None, alias="dokumenSPPTG")
    nomor_spptg: Optional[str] = Field(
        default=None, alias="nomorSPPTG", min_length=5, max_length=50
    )
    tanggal_terbit: Optional[datetime] = None


STEP_SCHEMAS = {1: Step1Data, 2: Step2Data, 3: Step3Data, 4: Step4Data}


# =============================================================================
# Step updates (tagged union)
# =============================================================================


class Step1Update(_CamelModel):
    current_step: Literal[1]
    payload: Step1Data


class Step2Update(_CamelModel):
    current_step: Literal[2]
    payload: Step2Data


class Step3Update(_CamelModel):
    current_step: Literal[3]
    payload: Step3Data


class Step4Update(_CamelModel):
    current_step: Literal[4]
    payload: Step4Data


StepUpdate = Annotated[
    Union[Step1Update, Step2Update, Step3Update, Step4Update],
    Field(discriminator="current_step"),
]

_STEP_UPDATE_ADAPTER: TypeAdapter = TypeAdapter(StepUpdate)


def parse_step_update(raw: Dict[str, Any]) -> Union[Step1Update, Step2Update, Step3Update, Step4Update]:
    """
    Parse a raw ``{"currentStep": n, "payload": {...}}`` save request.

    Raises:
        pydantic.ValidationError: Unknown step or payload not matching it.
    """
    return _STEP_UPDATE_ADAPTER.validate_python(raw)


# =============================================================================
# Accumulated payload
# =============================================================================


class OverlapSummary(_CamelModel):
    """Overlap row cached in the draft for display."""

    kawasan_id: int
    nama_kawasan: str
    jenis_kawasan: str
    luas_overlap: float
    percentage_overlap: Optional[float] = None


class DraftPayload(_CamelModel):
    """
    Everything saved so far for a draft.

    Every field is optional because steps are saved independently. Keys
    this model does not know about are kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    current_step: Optional[int] = Field(default=None, ge=1, le=4)
    last_saved: Optional[datetime] = None

    # Step 1
    nama_pemohon: Optional[str] = None
    nik: Optional[str] = None
    alamat: Optional[str] = None
    nomor_hp: Optional[str] = Field(default=None, alias="nomorHP")
    email: Optional[str] = None
    dokumen_ktp: Optional[UploadedDocument] = Field(default=None, alias="dokumenKTP")
    dokumen_kk: Optional[UploadedDocument] = Field(default=None, alias="dokumenKK")
    dokumen_kwitansi: Optional[UploadedDocument] = None
    dokumen_permohonan: Optional[UploadedDocument] = None
    persetujuan_data: Optional[bool] = None

    # Step 2
    village_id: Optional[int] = None
    kecamatan: Optional[str] = None
    kabupaten: Optional[str] = None
    penggunaan_lahan: Optional[str] = None
    catatan: Optional[str] = None
    juru_ukur: Optional[ResearchTeamMember] = None
    pihak_bpd: Optional[ResearchTeamMember] = Field(default=None, alias="pihakBPD")
    kepala_dusun: Optional[ResearchTeamMember] = None
    rt_setempat: Optional[ResearchTeamMember] = None
    saksi_list: List[BoundaryWitness] = Field(default_factory=list)
    coordinates_geografis: List[GeographicCoordinate] = Field(default_factory=list)
    luas_lahan: Optional[float] = None
    keliling_lahan: Optional[float] = None
    dokumen_berita_acara: Optional[UploadedDocument] = None
    dokumen_asal_usul: Optional[UploadedDocument] = None
    dokumen_pernyataan_jual_beli: Optional[UploadedDocument] = None
    dokumen_tidak_sengketa: Optional[UploadedDocument] = None
    foto_lahan: List[UploadedDocument] = Field(default_factory=list)

    # Step 3
    status: Optional[SubmissionStatus] = None
    alasan_status: Optional[str] = None
    verifikator: Optional[int] = None
    feedback: Optional[FeedbackData] = None

    # Step 4
    dokumen_spptg: Optional[UploadedDocument] = Field(default=None, alias="dokumenSPPTG")
    nomor_spptg: Optional[str] = Field(default=None, alias="nomorSPPTG")
    tanggal_terbit: Optional[datetime] = None

    overlap_results: List[OverlapSummary] = Field(default_factory=list)

    @classmethod
    def from_stored(cls, raw: Optional[Dict[str, Any]]) -> "DraftPayload":
        """
        Load a payload read from the database.

        Raises:
            DraftIncomplete: The stored JSON does not match the payload shape.
        """
        try:
            return cls.model_validate(raw or {})
        except ValidationError as e:
            fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
            raise DraftIncomplete("Data draft tidak valid", missing_fields=fields) from e

    def to_json(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys, as stored in the draft row."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")

    def merge(
        self, update: Union[Step1Update, Step2Update, Step3Update, Step4Update]
    ) -> "DraftPayload":
        """
        Return a new payload with the update's fields laid over this one.

        Fields the update does not set are kept; ``current_step`` becomes
        the update's step.
        """
        merged = self.to_json()
        merged.update(update.payload.model_dump(by_alias=True, exclude_unset=True, mode="json"))
        merged["currentStep"] = update.current_step
        return DraftPayload.model_validate(merged)

    def to_finalizable(self) -> "FinalizableDraft":
        """
        Narrow to the fields a submission is built from.

        Raises:
            DraftIncomplete: Applicant name or NIK is missing.
        """
        missing = [
            name
            for name, value in (("namaPemohon", self.nama_pemohon), ("nik", self.nik))
            if not (value and value.strip())
        ]
        if missing:
            raise DraftIncomplete(
                "Nama pemohon dan NIK wajib diisi sebelum finalisasi",
                missing_fields=missing,
            )

        return FinalizableDraft(
            nama_pemohon=self.nama_pemohon.strip(),
            nik=self.nik.strip(),
            alamat=self.alamat or "",
            nomor_hp=self.nomor_hp or "",
            email=self.email or "",
            village_id=self.village_id,
            kecamatan=self.kecamatan or "",
            kabupaten=self.kabupaten or "",
            luas=self.luas_lahan,
            penggunaan_lahan=self.penggunaan_lahan or "",
            catatan=self.catatan,
            coordinates=list(self.coordinates_geografis),
        )


class FinalizableDraft(BaseModel):
    """Draft data with the fields a submission requires guaranteed present."""

    nama_pemohon: str = Field(..., min_length=1)
    nik: str = Field(..., min_length=1)
    alamat: str = ""
    nomor_hp: str = ""
    email: str = ""
    village_id: Optional[int] = None
    kecamatan: str = ""
    kabupaten: str = ""
    luas: Optional[float] = Field(
        default=None, description="Declared area in m²; None means compute from geometry"
    )
    penggunaan_lahan: str = ""
    catatan: Optional[str] = None
    coordinates: List[GeographicCoordinate] = Field(default_factory=list)


class SubmissionDraft(BaseModel):
    """A row of the ``submission_drafts`` table."""

    id: int
    owner_id: int
    current_step: int = Field(default=1, ge=1, le=4)
    payload: DraftPayload = Field(default_factory=DraftPayload)
    village_id: Optional[int] = None
    last_saved: datetime
    finalized_submission_id: Optional[int] = None

    @property
    def is_finalized(self) -> bool:
        return self.finalized_submission_id is not None


# =============================================================================
# Step completion
# =============================================================================


@dataclass(frozen=True)
class StepValidation:
    """Whether a step's data is complete enough to move on."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)


def validate_step_completion(step: int, payload: Dict[str, Any]) -> StepValidation:
    """
    Check a step's data against that step's schema.

    Args:
        step: Wizard step, 1 to 4.
        payload: Raw camelCase payload for the step.

    Returns:
        StepValidation with one ``"path: message"`` entry per problem.
    """
    schema = STEP_SCHEMAS.get(step)
    if schema is None:
        return StepValidation(is_valid=False, errors=["Step tidak valid"])

    try:
        schema.model_validate(payload)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        return StepValidation(is_valid=False, errors=errors)
    return StepValidation(is_valid=True)
