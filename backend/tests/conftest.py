"""
conftest.py — Shared pytest fixtures for the Şantiye backend test suite.

Engine and store tests are pure unit tests. API tests drive the FastAPI
app through TestClient against a fresh in-memory SiteStore per test.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``santiye.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any santiye imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def site_store():
    """Empty SiteStore, isolated from the module-level singleton."""
    from santiye.store import SiteStore
    return SiteStore()


@pytest.fixture
def client(site_store):
    """TestClient with the store dependency pointed at ``site_store``."""
    from fastapi.testclient import TestClient
    from santiye.main import app
    from santiye.store import get_store

    app.dependency_overrides[get_store] = lambda: site_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Shared sample schedule data
# ---------------------------------------------------------------------------

@pytest.fixture
def residence_project():
    """
    One project with three weighted tasks:

      Kazı        weight 30, Done         → 30 completed
      Kaba inşaat weight 50, In Progress  → 25 completed
      İnce işler  weight 20, To Do        → 0
      ratio = 55 / 100 = 0.55, earned = 1 000 000 × 0.55 = 550 000
    """
    from santiye.models.domain import Project, Task, TaskStatus
    return Project(
        id="P1",
        name="Vadi Rezidans",
        location="Sarıyer, İstanbul",
        progress=70,
        budget=1_000_000,
        spent=400_000,
        start_date="2024-03-10",
        end_date="2024-06-20",
        tasks=[
            Task(id="T1", title="Kazı", status=TaskStatus.DONE, weight=30,
                 start_date="2024-02-15", due_date="2024-03-31"),
            Task(id="T2", title="Kaba inşaat", status=TaskStatus.IN_PROGRESS, weight=50,
                 start_date="2024-04-01", due_date="2024-07-05"),
            Task(id="T3", title="İnce işler", weight=20, due_date="2024-06-15"),
        ],
    )


@pytest.fixture
def subcontract():
    """Contract between project P1 and subcontractor S1 with two unit-price items."""
    from santiye.models.domain import Contract, ContractItem
    return Contract(
        id="C1",
        subcontractor_id="S1",
        project_id="P1",
        start_date="2024-03-01",
        end_date="2024-09-30",
        items=[
            ContractItem(id="I1", code="15.150", description="Beton dökümü", unit="m3", unit_price=100.0),
            ContractItem(id="I2", code="15.160", description="Kalıp işçiliği", unit="m2", unit_price=50.0),
        ],
    )


@pytest.fixture
def subcontractor():
    """Subcontractor S1, the party on ``subcontract``."""
    from santiye.models.domain import Subcontractor
    return Subcontractor(id="S1", name="Yılmaz Yapı", tax_id="1234567890", trade="Kaba İnşaat", rating=8.5)
