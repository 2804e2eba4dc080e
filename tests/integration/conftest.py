"""Integration test fixtures with a real (SQLite) database."""

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from finalization_engine.api.app import create_app
from finalization_engine.api.dependencies import get_db_session, get_store
from finalization_engine.database import create_schema, get_engine, make_session_factory
from finalization_engine.models import (
    AttendanceException,
    Company,
    Department,
    Employee,
    EmployeeSalary,
    LeaveRequest,
    LeaveType,
    TimeClockEntry,
    TimekeeperAssignment,
    TimesheetSubmission,
)
from finalization_engine.services.sql_store import SqlAlchemyFinalizationStore

PERIOD_START = date(2024, 1, 1)
PERIOD_END = date(2024, 1, 14)


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite database with the full schema."""
    engine = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'finalization.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(test_engine)


@pytest_asyncio.fixture
async def sql_store(session_factory) -> SqlAlchemyFinalizationStore:
    return SqlAlchemyFinalizationStore(session_factory)


@dataclass
class Seed:
    """Ids of the seeded fixture data."""

    company_id: UUID
    department_id: UUID
    timekeeper_id: UUID
    alice_id: UUID
    bob_id: UUID
    unassigned_id: UUID
    leave_request_id: UUID
    pending_exception_id: UUID


@pytest_asyncio.fixture
async def seeded(session_factory) -> Seed:
    """One company with a timekeeper managing Alice and Bob.

    - Alice: 70 regular / 5 overtime hours, 3 days unpaid leave on 60000/yr
    - Bob: 40 regular hours, one pending late exception
    - Carol: in the department but not assigned to the timekeeper
    """
    async with session_factory() as session:
        company = Company(name="Acme")
        session.add(company)
        await session.flush()

        department = Department(company_id=company.id, name="Operations")
        session.add(department)
        await session.flush()

        timekeeper = Employee(company_id=company.id, full_name="Tess Keeper")
        alice = Employee(
            company_id=company.id, department_id=department.id, full_name="Alice Smith"
        )
        bob = Employee(company_id=company.id, department_id=department.id, full_name="Bob Jones")
        carol = Employee(
            company_id=company.id, department_id=department.id, full_name="Carol White"
        )
        session.add_all([timekeeper, alice, bob, carol])
        await session.flush()

        session.add_all(
            [
                TimekeeperAssignment(
                    company_id=company.id, timekeeper_id=timekeeper.id, employee_id=alice.id
                ),
                TimekeeperAssignment(
                    company_id=company.id, timekeeper_id=timekeeper.id, employee_id=bob.id
                ),
                TimeClockEntry(
                    company_id=company.id,
                    employee_id=alice.id,
                    clock_in=datetime(2024, 1, 2, 9, 0),
                    regular_hours=Decimal("36.00"),
                    payable_regular_hours=Decimal("35.00"),
                    overtime_hours=Decimal("2.00"),
                ),
                TimeClockEntry(
                    company_id=company.id,
                    employee_id=alice.id,
                    clock_in=datetime(2024, 1, 3, 9, 0),
                    regular_hours=Decimal("35.00"),
                    overtime_hours=Decimal("3.00"),
                ),
                TimeClockEntry(
                    company_id=company.id,
                    employee_id=alice.id,
                    clock_in=datetime(2024, 1, 15, 9, 0),
                    regular_hours=Decimal("8.00"),
                ),
                TimeClockEntry(
                    company_id=company.id,
                    employee_id=bob.id,
                    clock_in=datetime(2024, 1, 4, 9, 0),
                    regular_hours=Decimal("40.00"),
                ),
                TimeClockEntry(
                    company_id=company.id,
                    employee_id=carol.id,
                    clock_in=datetime(2024, 1, 4, 9, 0),
                    regular_hours=Decimal("40.00"),
                ),
                EmployeeSalary(
                    employee_id=alice.id,
                    base_salary=Decimal("55000.00"),
                    pay_frequency="annual",
                    start_date=date(2022, 1, 1),
                    end_date=date(2022, 12, 31),
                ),
                EmployeeSalary(
                    employee_id=alice.id,
                    base_salary=Decimal("60000.00"),
                    pay_frequency="annual",
                    start_date=date(2023, 1, 1),
                ),
                TimesheetSubmission(
                    company_id=company.id,
                    employee_id=alice.id,
                    period_start=PERIOD_START,
                    period_end=PERIOD_END,
                    status="approved",
                ),
                TimesheetSubmission(
                    company_id=company.id,
                    employee_id=bob.id,
                    period_start=date(2023, 12, 25),
                    period_end=PERIOD_START,
                    status="approved",
                ),
            ]
        )

        unpaid = LeaveType(
            company_id=company.id, name="Unpaid Leave", is_paid=False, payment_method="unpaid"
        )
        session.add(unpaid)
        await session.flush()

        leave = LeaveRequest(
            company_id=company.id,
            employee_id=alice.id,
            leave_type_id=unpaid.id,
            start_date=date(2024, 1, 8),
            end_date=date(2024, 1, 10),
            status="approved",
        )
        pending_leave = LeaveRequest(
            company_id=company.id,
            employee_id=alice.id,
            leave_type_id=unpaid.id,
            start_date=date(2024, 1, 11),
            end_date=date(2024, 1, 12),
            status="pending",
        )
        pending_exception = AttendanceException(
            company_id=company.id,
            employee_id=bob.id,
            exception_date=date(2024, 1, 5),
            exception_type="late",
            status="pending",
        )
        session.add_all([leave, pending_leave, pending_exception])
        await session.commit()

        return Seed(
            company_id=company.id,
            department_id=department.id,
            timekeeper_id=timekeeper.id,
            alice_id=alice.id,
            bob_id=bob.id,
            unassigned_id=carol.id,
            leave_request_id=leave.id,
            pending_exception_id=pending_exception.id,
        )


@pytest_asyncio.fixture
async def approve_exception(session_factory):
    """Approve a pending exception so a commit can go through."""

    async def approve(exception_id: UUID) -> None:
        async with session_factory() as session:
            row = await session.get(AttendanceException, exception_id)
            row.status = "approved"
            await session.commit()

    return approve


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client bound to the test database."""

    async def test_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app = create_app()
    app.dependency_overrides[get_store] = lambda: SqlAlchemyFinalizationStore(session_factory)
    app.dependency_overrides[get_db_session] = test_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
