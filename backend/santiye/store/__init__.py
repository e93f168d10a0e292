"""
State layer - in-process store that owns every mutable record.

Projects (with their tasks and documents), subcontractors, contracts,
payment records and punch-list items live here and nowhere else. Reads hand out deep copies, so engines only
ever see snapshots and cannot mutate shared state.
"""
import logging
import threading
from datetime import date
from typing import Any, Dict, Generator, List, Mapping, Optional

from santiye.models.domain import (
    Contract,
    PaymentRecord,
    PaymentType,
    Project,
    ProjectDocument,
    ProjectStatus,
    PunchItem,
    PunchStatus,
    Subcontractor,
    Task,
    TaskHistory,
)

logger = logging.getLogger("santiye-store")

# Fields that identify a record and may not be changed through an update
_IMMUTABLE_FIELDS = {"id"}

_PUNCH_NEXT = {
    PunchStatus.OPEN: PunchStatus.RESOLVED,
    PunchStatus.RESOLVED: PunchStatus.APPROVED,
    PunchStatus.APPROVED: PunchStatus.OPEN,
}


class NotFoundError(KeyError):
    """Raised when a project, task, document, contract or payment id is unknown."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} '{record_id}' not found")
        self.kind = kind
        self.record_id = record_id

    def __str__(self) -> str:
        return self.args[0]


def _merge(model, updates: Mapping[str, Any]):
    """Validate ``updates`` applied on top of ``model``; returns a new instance."""
    data = model.model_dump()
    data.update({k: v for k, v in updates.items() if k not in _IMMUTABLE_FIELDS})
    return type(model).model_validate(data)


class SiteStore:
    def __init__(self):
        self._lock = threading.RLock()
        self._projects: Dict[str, Project] = {}
        self._contracts: Dict[str, Contract] = {}
        self._payments: Dict[str, PaymentRecord] = {}
        self._subcontractors: Dict[str, Subcontractor] = {}
        self._punch_items: Dict[str, PunchItem] = {}

    # ── internal lookups (caller holds the lock) ─────────────────────────────
    def _project(self, project_id: str) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    def _subcontractor(self, subcontractor_id: str) -> Subcontractor:
        sub = self._subcontractors.get(subcontractor_id)
        if sub is None:
            raise NotFoundError("Subcontractor", subcontractor_id)
        return sub

    def _task_index(self, project: Project, task_id: str) -> int:
        for idx, task in enumerate(project.tasks):
            if task.id == task_id:
                return idx
        raise NotFoundError("Task", task_id)

    # ── projects ─────────────────────────────────────────────────────────────
    def list_projects(self) -> List[Project]:
        with self._lock:
            return [p.model_copy(deep=True) for p in self._projects.values()]

    def get_project(self, project_id: str) -> Project:
        with self._lock:
            return self._project(project_id).model_copy(deep=True)

    def add_project(self, project: Project) -> Project:
        with self._lock:
            if project.id in self._projects:
                raise ValueError(f"Project '{project.id}' already exists")
            self._projects[project.id] = project.model_copy(deep=True)
        logger.info("Project added", extra={"project_id": project.id})
        return project.model_copy(deep=True)

    def update_project(self, project_id: str, updates: Mapping[str, Any]) -> Project:
        with self._lock:
            updated = _merge(self._project(project_id), updates)
            self._projects[project_id] = updated
            return updated.model_copy(deep=True)

    def delete_project(self, project_id: str) -> None:
        """Immediate removal; the project's contracts, payments and punch items go with it."""
        with self._lock:
            self._project(project_id)
            del self._projects[project_id]
            self._contracts = {k: c for k, c in self._contracts.items() if c.project_id != project_id}
            self._payments = {k: p for k, p in self._payments.items() if p.project_id != project_id}
            self._punch_items = {k: i for k, i in self._punch_items.items() if i.project_id != project_id}
        logger.info("Project deleted", extra={"project_id": project_id})

    # ── tasks ────────────────────────────────────────────────────────────────
    def add_task(self, project_id: str, task: Task) -> Task:
        with self._lock:
            project = self._project(project_id)
            project.tasks.append(task.model_copy(deep=True))
        return task.model_copy(deep=True)

    def update_task(
        self,
        project_id: str,
        task_id: str,
        updates: Mapping[str, Any],
        user: str = "Sistem",
    ) -> Task:
        """
        Apply field updates to a task. Any status may move to any other
        status; each change of status is appended to the task history.
        """
        with self._lock:
            project = self._project(project_id)
            idx = self._task_index(project, task_id)
            current = project.tasks[idx]
            updated = _merge(current, updates)
            if updated.status != current.status:
                updated.history.append(TaskHistory(
                    date=date.today().isoformat(),
                    action=f"Durum: {current.status.value} → {updated.status.value}",
                    user=user,
                ))
            project.tasks[idx] = updated
            return updated.model_copy(deep=True)

    def delete_task(self, project_id: str, task_id: str) -> None:
        with self._lock:
            project = self._project(project_id)
            del project.tasks[self._task_index(project, task_id)]

    # ── documents (metadata only) ────────────────────────────────────────────
    def add_document(self, project_id: str, doc: ProjectDocument) -> ProjectDocument:
        with self._lock:
            self._project(project_id).documents.append(doc.model_copy(deep=True))
        return doc.model_copy(deep=True)

    def delete_document(self, project_id: str, doc_id: str) -> None:
        with self._lock:
            project = self._project(project_id)
            remaining = [d for d in project.documents if d.id != doc_id]
            if len(remaining) == len(project.documents):
                raise NotFoundError("Document", doc_id)
            project.documents = remaining

    # ── contracts ────────────────────────────────────────────────────────────
    def add_contract(self, contract: Contract) -> Contract:
        with self._lock:
            self._project(contract.project_id)
            self._subcontractor(contract.subcontractor_id)
            self._contracts[contract.id] = contract.model_copy(deep=True)
        return contract.model_copy(deep=True)

    def get_contract(self, contract_id: str) -> Contract:
        with self._lock:
            contract = self._contracts.get(contract_id)
            if contract is None:
                raise NotFoundError("Contract", contract_id)
            return contract.model_copy(deep=True)

    def find_contract(self, project_id: str, subcontractor_id: str) -> Optional[Contract]:
        with self._lock:
            for contract in self._contracts.values():
                if contract.project_id == project_id and contract.subcontractor_id == subcontractor_id:
                    return contract.model_copy(deep=True)
        return None

    def list_contracts(self, project_id: Optional[str] = None) -> List[Contract]:
        with self._lock:
            return [
                c.model_copy(deep=True)
                for c in self._contracts.values()
                if project_id is None or c.project_id == project_id
            ]

    # ── payments (hakediş records) ───────────────────────────────────────────
    def add_payment(self, payment: PaymentRecord) -> PaymentRecord:
        with self._lock:
            if payment.project_id:
                self._project(payment.project_id)
            if payment.subcontractor_id:
                self._subcontractor(payment.subcontractor_id)
            self._payments[payment.id] = payment.model_copy(deep=True)
        logger.info("Payment recorded: %s %.2f", payment.type.value, payment.amount)
        return payment.model_copy(deep=True)

    def get_payment(self, payment_id: str) -> PaymentRecord:
        with self._lock:
            payment = self._payments.get(payment_id)
            if payment is None:
                raise NotFoundError("Payment", payment_id)
            return payment.model_copy(deep=True)

    def update_payment(self, payment_id: str, updates: Mapping[str, Any]) -> PaymentRecord:
        with self._lock:
            updated = _merge(self.get_payment(payment_id), updates)
            self._payments[payment_id] = updated
            return updated.model_copy(deep=True)

    def delete_payment(self, payment_id: str) -> None:
        with self._lock:
            if self._payments.pop(payment_id, None) is None:
                raise NotFoundError("Payment", payment_id)

    def list_payments(self, payment_type: Optional[PaymentType] = None) -> List[PaymentRecord]:
        with self._lock:
            return [
                p.model_copy(deep=True)
                for p in self._payments.values()
                if payment_type is None or p.type == payment_type
            ]

    # ── subcontractors ───────────────────────────────────────────────────────
    def list_subcontractors(self) -> List[Subcontractor]:
        with self._lock:
            return [s.model_copy(deep=True) for s in self._subcontractors.values()]

    def get_subcontractor(self, subcontractor_id: str) -> Subcontractor:
        with self._lock:
            return self._subcontractor(subcontractor_id).model_copy(deep=True)

    def add_subcontractor(self, sub: Subcontractor) -> Subcontractor:
        with self._lock:
            if sub.id in self._subcontractors:
                raise ValueError(f"Subcontractor '{sub.id}' already exists")
            self._subcontractors[sub.id] = sub.model_copy(deep=True)
        logger.info("Subcontractor added: %s (%s)", sub.name, sub.trade or "-")
        return sub.model_copy(deep=True)

    def update_subcontractor(self, subcontractor_id: str, updates: Mapping[str, Any]) -> Subcontractor:
        with self._lock:
            updated = _merge(self._subcontractor(subcontractor_id), updates)
            self._subcontractors[subcontractor_id] = updated
            return updated.model_copy(deep=True)

    def delete_subcontractor(self, subcontractor_id: str) -> None:
        """Refused while a contract still names the subcontractor."""
        with self._lock:
            self._subcontractor(subcontractor_id)
            bound = [c.id for c in self._contracts.values() if c.subcontractor_id == subcontractor_id]
            if bound:
                raise ValueError(
                    f"Subcontractor '{subcontractor_id}' still has {len(bound)} contract(s)"
                )
            del self._subcontractors[subcontractor_id]

    # ── punch list ───────────────────────────────────────────────────────────
    def list_punch_items(
        self,
        project_id: Optional[str] = None,
        status: Optional[PunchStatus] = None,
    ) -> List[PunchItem]:
        """Newest first."""
        with self._lock:
            return [
                i.model_copy(deep=True)
                for i in reversed(list(self._punch_items.values()))
                if (project_id is None or i.project_id == project_id)
                and (status is None or i.status == status)
            ]

    def get_punch_item(self, item_id: str) -> PunchItem:
        with self._lock:
            item = self._punch_items.get(item_id)
            if item is None:
                raise NotFoundError("Punch item", item_id)
            return item.model_copy(deep=True)

    def add_punch_item(self, item: PunchItem) -> PunchItem:
        with self._lock:
            if item.project_id:
                self._project(item.project_id)
            self._punch_items[item.id] = item.model_copy(deep=True)
        return item.model_copy(deep=True)

    def update_punch_item(self, item_id: str, updates: Mapping[str, Any]) -> PunchItem:
        with self._lock:
            updated = _merge(self.get_punch_item(item_id), updates)
            if updated.project_id:
                self._project(updated.project_id)
            self._punch_items[item_id] = updated
            return updated.model_copy(deep=True)

    def advance_punch_status(self, item_id: str) -> PunchItem:
        """Açık → Çözüldü → Onaylandı → Açık."""
        with self._lock:
            item = self.get_punch_item(item_id)
            item.status = _PUNCH_NEXT[item.status]
            self._punch_items[item_id] = item
            return item.model_copy(deep=True)

    def delete_punch_item(self, item_id: str) -> None:
        with self._lock:
            if self._punch_items.pop(item_id, None) is None:
                raise NotFoundError("Punch item", item_id)

    # ── housekeeping ─────────────────────────────────────────────────────────
    def clear(self) -> None:
        with self._lock:
            self._projects.clear()
            self._contracts.clear()
            self._payments.clear()
            self._subcontractors.clear()
            self._punch_items.clear()

    def seed_demo_data(self) -> int:
        """Load the demonstration projects. Idempotent: existing ids are skipped."""
        added = 0
        for project in DEMO_PROJECTS:
            with self._lock:
                if project.id in self._projects:
                    continue
                self._projects[project.id] = project.model_copy(deep=True)
            added += 1
        logger.info("Demo data seeded: %d project(s)", added)
        return added


DEMO_PROJECTS: List[Project] = [
    Project(
        id="1",
        name="Vadi İstanbul Rezidans",
        location="Sarıyer, İstanbul",
        client="Özel Yatırımcı",
        site_manager="Müh. Ahmet Yılmaz",
        status=ProjectStatus.IN_PROGRESS,
        progress=65,
        budget=52_000_000,
        spent=31_000_000,
        start_date=date(2023, 9, 1),
        end_date=date(2024, 12, 15),
        description="12 katlı, 4 bloktan oluşan lüks konut projesi. Kapalı otopark ve sosyal tesisler dahil.",
    ),
    Project(
        id="2",
        name="Sahil Park Evleri - Etap 2",
        location="Kartal, İstanbul",
        client="SiteMaster GYO",
        site_manager="Mimar Selin Demir",
        status=ProjectStatus.PLANNING,
        progress=15,
        budget=28_000_000,
        spent=1_500_000,
        start_date=date(2024, 3, 10),
        end_date=date(2025, 6, 30),
        description="40 adet villa ve ortak havuz alanı inşaatı.",
    ),
]


store = SiteStore()


def get_store() -> Generator[SiteStore, None, None]:
    yield store
