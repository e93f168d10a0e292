"""Domain models for the Şantiye site-management backend — pydantic v2."""
import uuid
from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field


def gen_id() -> str:
    return uuid.uuid4().hex


# ── ENUMS ─────────────────────────────────────────────────────────────────────
class ProjectStatus(str, Enum):
    PLANNING = "Planning"
    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"


class TaskStatus(str, Enum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    DONE = "Done"


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class DocumentType(str, Enum):
    PDF = "PDF"
    EXCEL = "EXCEL"
    DWG = "DWG"
    IMAGE = "IMAGE"
    OTHER = "OTHER"


class ContractStatus(str, Enum):
    DRAFT = "Taslak"
    ACTIVE = "Aktif"
    COMPLETED = "Tamamlandı"
    TERMINATED = "Feshedildi"


class PaymentType(str, Enum):
    EMPLOYER = "Idare"          # hakediş billed to the client
    SUBCONTRACTOR = "Taseron"   # hakediş paid to a subcontractor


class PunchStatus(str, Enum):
    OPEN = "Açık"
    RESOLVED = "Çözüldü"
    APPROVED = "Onaylandı"


class PunchSeverity(str, Enum):
    LOW = "Düşük"
    MEDIUM = "Orta"
    HIGH = "Yüksek"


# ── PROJECTS & TASKS ──────────────────────────────────────────────────────────
class TaskHistory(BaseModel):
    id: str = Field(default_factory=gen_id)
    date: str
    action: str
    user: str = "Sistem"


class Task(BaseModel):
    id: str = Field(default_factory=gen_id)
    title: str = Field(..., min_length=1)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date
    start_date: Optional[date] = None      # falls back to the project start
    assignee: Optional[str] = None
    description: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0, le=100)   # pursantaj share, None → 0
    history: list[TaskHistory] = Field(default_factory=list)

    @property
    def effective_weight(self) -> float:
        return self.weight or 0.0


class ProjectDocument(BaseModel):
    id: str = Field(default_factory=gen_id)
    name: str
    type: DocumentType = DocumentType.OTHER
    url: str
    upload_date: date
    size: Optional[str] = None


class Project(BaseModel):
    id: str = Field(default_factory=gen_id)
    name: str = Field(..., min_length=1)
    location: str = ""
    status: ProjectStatus = ProjectStatus.PLANNING
    progress: int = Field(0, ge=0, le=100)   # manual, user-entered
    budget: float = Field(0.0, ge=0)
    spent: float = Field(0.0, ge=0)          # may exceed budget
    start_date: date
    end_date: date
    description: Optional[str] = None
    client: Optional[str] = None
    site_manager: Optional[str] = None
    image_url: Optional[str] = None
    tasks: list[Task] = Field(default_factory=list)
    documents: list[ProjectDocument] = Field(default_factory=list)


# ── CONTRACTS & PAYMENTS ──────────────────────────────────────────────────────
class ContractItem(BaseModel):
    id: str = Field(default_factory=gen_id)
    code: str
    description: str
    unit: str
    unit_price: float = Field(..., ge=0)


class Contract(BaseModel):
    id: str = Field(default_factory=gen_id)
    subcontractor_id: str
    project_id: str
    items: list[ContractItem] = Field(default_factory=list)
    start_date: date
    end_date: date
    status: ContractStatus = ContractStatus.DRAFT

    @computed_field
    @property
    def duration_days(self) -> int:
        """Calendar days between start and end."""
        return max((self.end_date - self.start_date).days, 0)


class PaymentItemDetail(BaseModel):
    item_id: str
    quantity: float = Field(..., ge=0)
    total: float


class PaymentRecord(BaseModel):
    id: str = Field(default_factory=gen_id)
    date: date
    month: str                 # display label, e.g. "Ocak 2024"
    amount: float = Field(..., gt=0)
    type: PaymentType
    project_id: Optional[str] = None
    subcontractor_id: Optional[str] = None
    items: Optional[list[PaymentItemDetail]] = None


# ── SUBCONTRACTORS ────────────────────────────────────────────────────────────
class Subcontractor(BaseModel):
    id: str = Field(default_factory=gen_id)
    name: str = Field(..., min_length=1)
    tax_id: str = Field(..., min_length=1)
    trade: str = ""                          # e.g. "Kaba İnşaat", "Elektrik"
    phone: Optional[str] = None
    email: Optional[str] = None
    contact_person: Optional[str] = None
    rating: float = Field(8.0, ge=0, le=10)
    total_score: float = Field(0.0, ge=0)    # cumulative, for sub of the year
    avatar_url: Optional[str] = None


# ── PUNCH LIST ────────────────────────────────────────────────────────────────
class PunchItem(BaseModel):
    id: str = Field(default_factory=gen_id)
    title: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    status: PunchStatus = PunchStatus.OPEN
    severity: PunchSeverity = PunchSeverity.MEDIUM
    assignee: str = ""
    project_id: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    reported_on: Optional[date] = None
