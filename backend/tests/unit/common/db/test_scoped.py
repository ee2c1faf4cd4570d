"""
Unit of work tests against a private in-memory database.

The shared conftest binds every session to one connection, which hides
commit and isolation behaviour, so these tests get their own engine.
"""

import asyncio
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from common.core.exceptions import InternalError
from common.db.base import Base
from common.db.context import _force_readonly, get_current_session, in_transaction
from common.db.scoped import get_session, transaction
from packages.billing.models.database.plan import SubscriptionPlanEntity
from packages.users.models.database.user import UserEntity


def make_plan(name: str, price: str = "990.00") -> SubscriptionPlanEntity:
    return SubscriptionPlanEntity(
        name=name,
        price=Decimal(price),
        currency="KZT",
        duration="monthly",
        limits={"publications": 5},
        features={},
    )


@pytest_asyncio.fixture
async def isolated_factory(monkeypatch, tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/t.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    # Overrides the conftest-wide patch for this module
    monkeypatch.setattr("common.db.scoped.AsyncSessionLocal", factory)
    monkeypatch.setattr("common.db.scoped.AsyncSessionLocalReadonly", factory)
    yield factory
    await engine.dispose()


async def plan_names(factory) -> list[str]:
    async with factory() as session:
        result = await session.execute(
            select(SubscriptionPlanEntity.name).order_by(SubscriptionPlanEntity.name)
        )
        return list(result.scalars())


@pytest.mark.asyncio
class TestTransaction:
    async def test_commits_on_exit(self, isolated_factory):
        async with transaction() as session:
            session.add(make_plan("Basic"))

        assert await plan_names(isolated_factory) == ["Basic"]

    async def test_rolls_back_on_error(self, isolated_factory):
        with pytest.raises(ValueError):
            async with transaction() as session:
                session.add(make_plan("Doomed"))
                await session.flush()
                raise ValueError("payment rejected")

        assert await plan_names(isolated_factory) == []

    async def test_session_is_published_in_context(self, isolated_factory):
        async with transaction() as session:
            assert get_current_session(readonly=False) is session
            assert in_transaction(readonly=False) is True

        assert get_current_session(readonly=False) is None
        assert in_transaction(readonly=False) is False

    async def test_nested_blocks_share_the_outer_session(self, isolated_factory):
        async with transaction() as outer:
            async with transaction() as inner:
                async with get_session() as innermost:
                    assert inner is outer
                    assert innermost is outer

    async def test_inner_error_undoes_outer_work(self, isolated_factory):
        with pytest.raises(ValueError):
            async with transaction() as outer:
                outer.add(make_plan("Outer"))
                async with transaction() as inner:
                    inner.add(make_plan("Inner"))
                    await inner.flush()
                    raise ValueError("quota exhausted")

        assert await plan_names(isolated_factory) == []

    async def test_inner_writes_wait_for_outer_commit(self, isolated_factory):
        async with transaction() as outer:
            async with get_session() as inner:
                inner.add(make_plan("Pending"))
                await inner.flush()
            # Flushed but not committed yet
            count = await outer.scalar(select(func.count(SubscriptionPlanEntity.id)))
            assert count == 1

        assert await plan_names(isolated_factory) == ["Pending"]


@pytest.mark.asyncio
class TestStandaloneSession:
    async def test_commits_single_operation(self, isolated_factory):
        async with get_session() as session:
            session.add(make_plan("Standalone"))

        assert await plan_names(isolated_factory) == ["Standalone"]

    async def test_each_call_gets_a_new_session(self, isolated_factory):
        async with get_session() as first:
            pass
        async with get_session() as second:
            pass

        assert first is not second

    async def test_readonly_flag_still_reads(self, isolated_factory):
        token = _force_readonly.set(True)
        try:
            async with get_session() as session:
                assert (await session.execute(text("SELECT 1"))).scalar() == 1
        finally:
            _force_readonly.reset(token)


@pytest.mark.asyncio
class TestConcurrentTransactions:
    async def test_tasks_do_not_share_sessions(self, isolated_factory):
        seen = {}

        async def worker(name: str, delay: float):
            async with transaction() as session:
                await asyncio.sleep(delay)
                seen[name] = (session, get_current_session(readonly=False))

        await asyncio.gather(worker("a", 0.01), worker("b", 0.0), worker("c", 0.005))

        assert all(own is current for own, current in seen.values())
        assert len({id(own) for own, _ in seen.values()}) == 3

    async def test_failure_in_one_task_keeps_the_others(self, isolated_factory):
        async def create(name: str, fail: bool):
            async with transaction() as session:
                session.add(make_plan(name))
                if fail:
                    raise ValueError(name)

        results = await asyncio.gather(
            create("Alpha", False),
            create("Beta", True),
            create("Gamma", False),
            return_exceptions=True,
        )

        assert isinstance(results[1], ValueError)
        assert await plan_names(isolated_factory) == ["Alpha", "Gamma"]


@pytest.mark.asyncio
class TestStoreFailures:
    async def test_integrity_error_becomes_internal_error(self, isolated_factory):
        with pytest.raises(InternalError):
            async with transaction() as session:
                for _ in range(2):
                    session.add(
                        UserEntity(email="dup@example.com", full_name="Dup", role="model")
                    )
                await session.flush()

        async with isolated_factory() as session:
            count = await session.scalar(select(func.count(UserEntity.id)))
        assert count == 0

    async def test_standalone_query_error_becomes_internal_error(self, isolated_factory):
        with pytest.raises(InternalError):
            async with get_session() as session:
                await session.execute(text("SELECT * FROM missing_table"))
