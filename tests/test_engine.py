# grimpebot - Discord Climbing Session Bot
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""Tests for the session engine entry points."""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sessions.config import SessionConfig
from sessions.engine import Outcome, SessionEngine
from sessions.errors import (
    LocationError,
    NotFoundError,
    PastDueError,
    PermissionDeniedError,
    TimeError,
)
from sessions.models import UserIdentity

PARIS = pytz.timezone("Europe/Paris")
NOW = PARIS.localize(datetime(2026, 10, 14, 12, 0))

AUTHOR = UserIdentity("100", "orga", "Orga")
ALICE = UserIdentity("1", "alice", "Alice")
BOB = UserIdentity("2", "bob", "Bob")


class Clock:
    """Manually advanced clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_engine(tmp_path=None, **overrides) -> tuple[SessionEngine, AsyncMock, Clock]:
    options = {"persistence_enabled": tmp_path is not None}
    if tmp_path is not None:
        options["data_dir"] = str(tmp_path)
    options.update(overrides)

    presenter = AsyncMock()
    presenter.message_exists.return_value = True
    clock = Clock(NOW)
    engine = SessionEngine(SessionConfig(**options), presenter, clock=clock)
    return engine, presenter, clock


async def create(engine: SessionEngine, key: str = "m1", date: str = "demain", time: str = "18h30"):
    return await engine.create_event(key, date, time, "laennec", None, AUTHOR)


class TestValidate:
    def test_valid_input_previews_event(self):
        engine, _, _ = make_engine()
        result = engine.validate_event("demain", "18.30", "part dieu", "Bloc")

        assert result.ok
        assert result.outcome is Outcome.VALID
        assert result.event.time_label == "18h30"
        assert result.event.location == "Part Dieu"
        assert len(engine.events) == 0

    @pytest.mark.parametrize(
        "date,time,location,error",
        [
            ("demain", "5h", "Laennec", TimeError),
            ("demain", "18h", "Bellecour", LocationError),
        ],
    )
    def test_invalid_input_is_a_failed_result(self, date, time, location, error):
        engine, _, _ = make_engine()
        result = engine.validate_event(date, time, location)

        assert not result.ok
        assert isinstance(result.error, error)
        assert result.message == str(result.error)


class TestSessionScenario:
    @pytest.mark.asyncio
    async def test_create_join_remind_expire(self, tmp_path):
        engine, presenter, clock = make_engine(tmp_path)

        result = await create(engine)
        assert result.ok and result.outcome is Outcome.CREATED
        assert engine.event_instant(result.event) == PARIS.localize(datetime(2026, 10, 15, 18, 30))

        joined = await engine.toggle_participant("m1", ALICE)
        assert joined.outcome is Outcome.ADDED
        presenter.on_roster_changed.assert_awaited_with("m1", [ALICE])

        reminder = await engine.toggle_reminder("m1", "1")
        assert reminder.outcome is Outcome.SCHEDULED

        clock.now = PARIS.localize(datetime(2026, 10, 15, 17, 30))
        assert await engine.sweeper.run_reminder_pass(clock()) == 1
        key, user_id, summary = presenter.on_reminder_due.await_args.args
        assert (key, user_id) == ("m1", "1")
        assert summary.location == "Laennec"

        clock.now = PARIS.localize(datetime(2026, 10, 15, 21, 31))
        assert await engine.sweeper.run_cleanup_pass(clock()) == ["m1"]
        assert engine.get_event("m1") is None
        presenter.on_event_expired.assert_awaited_once_with("m1")

    @pytest.mark.asyncio
    async def test_state_survives_restart(self, tmp_path):
        engine, _, _ = make_engine(tmp_path)
        await create(engine)
        await engine.toggle_participant("m1", ALICE)
        await engine.toggle_reminder("m1", "1")

        restarted, presenter, _ = make_engine(tmp_path)
        restarted.sweeper.start = MagicMock()
        report = await restarted.start()

        assert report.loaded == 1
        assert restarted.get_event("m1").roster == [ALICE]
        assert restarted.reminders.is_scheduled("m1", "1")


class TestCreate:
    @pytest.mark.asyncio
    async def test_invalid_create_stores_nothing(self):
        engine, _, _ = make_engine()
        result = await engine.create_event("m1", "hier", "18h", "Laennec", None, AUTHOR)

        assert not result.ok
        assert len(engine.events) == 0
        assert "m1" not in engine.reminders

    @pytest.mark.asyncio
    async def test_create_keeps_validated_day_across_midnight(self):
        engine, _, clock = make_engine()
        clock.now = PARIS.localize(datetime(2026, 10, 14, 23, 59))
        checked = engine.validate_event("aujourd'hui", "20h", "Laennec")

        # Posting the message takes long enough to cross midnight
        clock.advance(minutes=2)
        result = await engine.create_event(
            "m1", "aujourd'hui", "20h", "Laennec", None, AUTHOR, now=checked.event.created_at
        )

        assert result.ok
        assert result.event.created_at == checked.event.created_at
        assert engine.event_instant(result.event) == PARIS.localize(datetime(2026, 10, 14, 20, 0))

    def test_preview_reads_clock_once(self):
        engine, _, _ = make_engine()
        reads = []

        def clock():
            reads.append(NOW)
            return NOW

        engine.clock = clock
        engine.validate_event("demain", "18h", "Laennec")
        assert len(reads) == 1

    @pytest.mark.asyncio
    async def test_create_opens_empty_reminder_set(self):
        engine, _, _ = make_engine()
        await create(engine)
        assert "m1" in engine.reminders
        assert engine.reminders.pending_count() == 0


class TestRoster:
    @pytest.mark.asyncio
    async def test_toggle_twice_removes(self):
        engine, _, _ = make_engine()
        await create(engine)
        await engine.toggle_participant("m1", ALICE)
        result = await engine.toggle_participant("m1", ALICE)
        assert result.outcome is Outcome.REMOVED
        assert result.event.roster == []

    @pytest.mark.asyncio
    async def test_join_and_leave_are_idempotent(self):
        engine, presenter, _ = make_engine()
        await create(engine)

        assert (await engine.join("m1", BOB)).outcome is Outcome.ADDED
        assert (await engine.join("m1", BOB)).outcome is Outcome.ALREADY_PRESENT
        assert (await engine.leave("m1", BOB)).outcome is Outcome.REMOVED
        assert (await engine.leave("m1", BOB)).outcome is Outcome.NOT_PRESENT
        assert presenter.on_roster_changed.await_count == 2

    @pytest.mark.asyncio
    async def test_unknown_key(self):
        engine, _, _ = make_engine()
        for result in (
            await engine.toggle_participant("missing", ALICE),
            await engine.join("missing", ALICE),
            await engine.leave("missing", ALICE),
            await engine.toggle_reminder("missing", "1"),
        ):
            assert not result.ok
            assert isinstance(result.error, NotFoundError)

    @pytest.mark.asyncio
    async def test_display_failure_keeps_change(self):
        engine, presenter, _ = make_engine()
        await create(engine)
        presenter.on_roster_changed.side_effect = RuntimeError("rate limited")

        result = await engine.toggle_participant("m1", ALICE)

        assert result.ok
        assert engine.get_event("m1").roster == [ALICE]


class TestReminders:
    @pytest.mark.asyncio
    async def test_schedule_then_cancel(self):
        engine, _, _ = make_engine()
        await create(engine)

        assert (await engine.toggle_reminder("m1", "1")).outcome is Outcome.SCHEDULED
        assert (await engine.toggle_reminder("m1", "1")).outcome is Outcome.CANCELLED
        assert engine.reminders.pending_count() == 0

    @pytest.mark.asyncio
    async def test_too_late_to_remind(self):
        engine, _, clock = make_engine()
        await create(engine)
        clock.now = PARIS.localize(datetime(2026, 10, 15, 17, 45))

        result = await engine.toggle_reminder("m1", "1")

        assert not result.ok
        assert isinstance(result.error, PastDueError)

    @pytest.mark.asyncio
    async def test_lead_time_from_config(self):
        engine, _, _ = make_engine(reminder_lead_minutes=30)
        await create(engine)
        await engine.toggle_reminder("m1", "1")

        fire_at = dict(engine.reminders.items())["m1"]["1"]
        assert fire_at == PARIS.localize(datetime(2026, 10, 15, 18, 0))


class TestEdit:
    @pytest.mark.asyncio
    async def test_unprivileged_edit_denied(self):
        engine, _, _ = make_engine()
        await create(engine)

        result = await engine.edit_event("m1", "samedi", "10h", "Laennec", None)

        assert not result.ok
        assert isinstance(result.error, PermissionDeniedError)
        assert engine.get_event("m1").date_token == "demain"

    @pytest.mark.asyncio
    async def test_edit_open_to_everyone_when_configured(self):
        engine, _, _ = make_engine(edit_requires_privilege=False)
        await create(engine)

        result = await engine.edit_event("m1", "samedi", "10h", "Laennec", None)
        assert result.ok and result.outcome is Outcome.EDITED

    @pytest.mark.asyncio
    async def test_privileged_edit_moves_reminders(self):
        engine, _, _ = make_engine()
        await create(engine)
        await engine.toggle_reminder("m1", "1")
        await engine.toggle_reminder("m1", "2")

        result = await engine.edit_event(
            "m1", "samedi", "10", "climb up gerland", "Voie", privileged=True
        )

        assert result.ok
        assert result.event.time_label == "10h"
        assert result.event.location == "Climb Up Gerland"
        new_fire = PARIS.localize(datetime(2026, 10, 17, 9, 0))
        assert set(dict(engine.reminders.items())["m1"].values()) == {new_fire}

    @pytest.mark.asyncio
    async def test_same_day_edit_leaves_reminders_in_place(self):
        engine, _, clock = make_engine()
        clock.now = PARIS.localize(datetime(2026, 10, 18, 12, 0))
        await create(engine, date="lundi", time="18h")
        await engine.toggle_reminder("m1", "1")

        clock.now = PARIS.localize(datetime(2026, 10, 19, 9, 0))
        result = await engine.edit_event(
            "m1", "lundi", "18h", "Part Dieu", "Bloc", privileged=True
        )

        assert result.ok
        assert engine.event_instant(result.event) == PARIS.localize(datetime(2026, 10, 19, 18, 0))
        fire_at = dict(engine.reminders.items())["m1"]["1"]
        assert fire_at == PARIS.localize(datetime(2026, 10, 19, 17, 0))

    @pytest.mark.asyncio
    async def test_invalid_edit_changes_nothing(self):
        engine, _, _ = make_engine()
        await create(engine)

        result = await engine.edit_event("m1", "samedi", "3h", "Laennec", None, privileged=True)

        assert isinstance(result.error, TimeError)
        assert engine.get_event("m1").time_label == "18h30"

    @pytest.mark.asyncio
    async def test_edit_unknown_key(self):
        engine, _, _ = make_engine()
        result = await engine.edit_event("missing", "samedi", "10h", "Laennec", None, privileged=True)
        assert isinstance(result.error, NotFoundError)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_recovery_runs_before_sweeper(self):
        engine, _, _ = make_engine()
        calls = []

        async def recover(now):
            calls.append("recover")

        engine.recovery.recover = recover
        engine.sweeper.start = MagicMock(side_effect=lambda: calls.append("sweeper"))

        await engine.start()

        assert calls == ["recover", "sweeper"]

    def test_persistence_disabled_has_no_gateway(self):
        engine, _, _ = make_engine()
        assert engine.state.gateway is None

    def test_persistence_enabled_uses_data_dir(self, tmp_path):
        engine, _, _ = make_engine(tmp_path)
        assert engine.state.gateway.data_dir == tmp_path


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
