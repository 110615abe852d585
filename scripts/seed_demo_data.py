"""Seed idempotent demo data for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import SessionLocal, close_engine
from app.modules.identity.models import User
from app.modules.identity.repository import IdentityRepository
from app.modules.identity.schemas import CandidateCreate, InterviewerCreate
from app.modules.identity.service import IdentityService
from app.modules.interviews.repository import InterviewsRepository
from app.modules.scheduling.models import BlockedSlot
from app.modules.scheduling.repository import SchedulingRepository
from app.modules.scheduling.schemas import BlockCreate
from app.modules.scheduling.service import SchedulingService
from app.modules.sync.repository import SyncRepository

DEMO_INTERVIEWERS = (
    ("Demo Interviewer One", "demo-interviewer-1", "interviewer1@interviewflow.dev"),
    ("Demo Interviewer Two", "demo-interviewer-2", "interviewer2@interviewflow.dev"),
)
DEMO_CANDIDATES = (
    ("Demo Candidate Alpha", "+10000000001"),
    ("Demo Candidate Beta", "+10000000002"),
)

DEMO_BLOCK_DAY_OFFSETS = (1, 2, 3, 4, 5)
DEMO_BLOCK_WINDOW = ("13:00", "14:00")
DEMO_BLOCK_REASON = "Lunch break"


@dataclass(slots=True)
class SeedStats:
    interviewers_created: int = 0
    candidates_created: int = 0
    blocks_created: int = 0
    admin_username: str = ""


async def _ensure_interviewers(session: AsyncSession, service: IdentityService, admin: User) -> int:
    created = 0
    for name, username, email in DEMO_INTERVIEWERS:
        if await service.repository.get_user_by_phone(username) is not None:
            continue
        await service.create_interviewer(InterviewerCreate(name=name, username=username, email=email), admin)
        created += 1
    await session.flush()
    return created


async def _ensure_candidates(session: AsyncSession, service: IdentityService, admin: User) -> int:
    created = 0
    for name, phone in DEMO_CANDIDATES:
        existing = await service.repository.get_user_by_phone(phone)
        if existing is not None:
            # Approval is idempotent and restores a missing placeholder.
            await service.approve_student(existing.id, admin)
            continue
        await service.add_candidate(CandidateCreate(name=name, phone=phone), admin)
        created += 1
    await session.flush()
    return created


async def _ensure_demo_blocks(session: AsyncSession, admin: User) -> int:
    scheduling_service = SchedulingService(
        repository=SchedulingRepository(session),
        interviews_repository=InterviewsRepository(session),
        sync_repository=SyncRepository(session),
    )
    start_time, end_time = DEMO_BLOCK_WINDOW
    created = 0
    today = date.today()

    for day_offset in DEMO_BLOCK_DAY_OFFSETS:
        target_date = today + timedelta(days=day_offset)
        existing = await session.scalar(
            select(BlockedSlot).where(
                BlockedSlot.date == target_date,
                BlockedSlot.start_time == start_time,
                BlockedSlot.end_time == end_time,
            ),
        )
        if existing is not None:
            continue

        await scheduling_service.create_block(
            BlockCreate(date=target_date, start_time=start_time, end_time=end_time, reason=DEMO_BLOCK_REASON),
            admin,
        )
        created += 1

    await session.flush()
    return created


async def _run_seed(*, allow_production: bool) -> SeedStats:
    settings = get_settings()
    app_env = settings.app_env.strip().lower()
    if app_env in {"production", "prod"} and not allow_production:
        raise RuntimeError(
            "Refusing to seed demo data in production. "
            "Re-run with --allow-production only if you are absolutely sure.",
        )

    stats = SeedStats()

    async with SessionLocal() as session:
        try:
            identity_service = IdentityService(
                repository=IdentityRepository(session),
                interviews_repository=InterviewsRepository(session),
                sync_repository=SyncRepository(session),
            )
            await identity_service.ensure_default_roles()
            await session.flush()
            admin = await identity_service.ensure_default_admin()
            stats.admin_username = admin.phone

            stats.interviewers_created = await _ensure_interviewers(session, identity_service, admin)
            stats.candidates_created = await _ensure_candidates(session, identity_service, admin)
            stats.blocks_created = await _ensure_demo_blocks(session, admin)

            await session.commit()
        except Exception:
            await session.rollback()
            raise

    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Seed idempotent demo data for InterviewFlow (interviewers, approved "
            "candidates with placeholder slots, lunch blackout windows)."
        ),
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Admin username: {stats.admin_username}")
    print(f"- Interviewers created: {stats.interviewers_created}")
    print(f"- Candidates created: {stats.candidates_created}")
    print(f"- Blackout windows created: {stats.blocks_created}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production))
    except Exception as exc:
        print(f"Demo seed failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
