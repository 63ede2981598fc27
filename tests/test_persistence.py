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

"""Tests for JSON snapshots of the session stores."""

import json
import sys
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sessions.errors import CorruptDataError
from sessions.models import EventFields, UserIdentity
from sessions.persistence import EVENTS_FILE, REMINDERS_FILE, PersistenceGateway
from sessions.reminders import ReminderRegistry
from sessions.store import EventStore

PARIS = pytz.timezone("Europe/Paris")
NOW = PARIS.localize(datetime(2026, 10, 14, 12, 0))
LEAD = timedelta(hours=1)

AUTHOR = UserIdentity("100", "orga", "Orga", "https://cdn.example/orga.png")
U1 = UserIdentity("1", "alice", "Alice", None)
U2 = UserIdentity("2", "bob", "Bob", "https://cdn.example/bob.png")


def populated_stores() -> tuple[EventStore, ReminderRegistry]:
    store = EventStore(PARIS)
    registry = ReminderRegistry()

    store.create("m1", EventFields("demain", "18h30", "Laennec", "Bloc"), AUTHOR, NOW)
    store.create("m2", EventFields("25/10", "20", "Part Dieu"), AUTHOR, NOW)
    store.toggle_participant("m1", U1)
    store.toggle_participant("m1", U2)
    store.edit("m2", EventFields("26/10", "20", "Part Dieu"), NOW + timedelta(minutes=5))

    registry.schedule("m1", "1", store.event_instant(store.get("m1")), LEAD, NOW)
    registry.ensure_set("m2")
    return store, registry


class TestSave:
    @pytest.mark.asyncio
    async def test_file_layout(self, tmp_path):
        store, registry = populated_stores()
        await PersistenceGateway(tmp_path).save(store, registry)

        events = json.loads((tmp_path / EVENTS_FILE).read_text(encoding="utf-8"))
        assert [key for key, _ in events] == ["m1", "m2"]
        record = events[0][1]
        assert record["dateToken"] == "demain"
        assert record["timeLabel"] == "18h30"
        assert record["location"] == "Laennec"
        assert record["info"] == "Bloc"
        assert record["author"]["id"] == "100"
        assert [p["id"] for p in record["roster"]] == ["1", "2"]
        assert record["createdAt"] == int(NOW.timestamp() * 1000)
        assert record["editedAt"] is None

        reminders = json.loads((tmp_path / REMINDERS_FILE).read_text(encoding="utf-8"))
        fire_at = PARIS.localize(datetime(2026, 10, 15, 17, 30))
        assert reminders == [["m1", [["1", int(fire_at.timestamp() * 1000)]]], ["m2", []]]

    @pytest.mark.asyncio
    async def test_creates_data_dir_and_leaves_no_temp_files(self, tmp_path):
        store, registry = populated_stores()
        data_dir = tmp_path / "nested" / "data"
        await PersistenceGateway(data_dir).save(store, registry)

        assert sorted(p.name for p in data_dir.iterdir()) == [EVENTS_FILE, REMINDERS_FILE]

    @pytest.mark.asyncio
    async def test_failed_write_keeps_previous_snapshot(self, tmp_path):
        store, registry = populated_stores()
        gateway = PersistenceGateway(tmp_path)
        await gateway.save(store, registry)
        before = (tmp_path / EVENTS_FILE).read_text(encoding="utf-8")

        store.delete("m1")
        with patch("sessions.persistence.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                await gateway.save(store, registry)

        assert (tmp_path / EVENTS_FILE).read_text(encoding="utf-8") == before
        assert sorted(p.name for p in tmp_path.iterdir()) == [EVENTS_FILE, REMINDERS_FILE]


class TestLoad:
    @pytest.mark.asyncio
    async def test_missing_snapshot_is_empty(self, tmp_path):
        snapshot = await PersistenceGateway(tmp_path / "nothing").load()
        assert snapshot.is_empty

    @pytest.mark.asyncio
    async def test_restores_saved_state(self, tmp_path):
        store, registry = populated_stores()
        gateway = PersistenceGateway(tmp_path)
        await gateway.save(store, registry)

        snapshot = await gateway.load()
        restored = EventStore(PARIS)
        restored.restore(snapshot.events)
        restored_reminders = ReminderRegistry()
        restored_reminders.restore(snapshot.reminders)

        m1 = restored.get("m1")
        assert m1.roster == [U1, U2]
        assert m1.author == AUTHOR
        assert restored.event_instant(m1) == store.event_instant(store.get("m1"))
        assert restored.get("m2").edited_at == NOW + timedelta(minutes=5)
        assert restored.event_instant(restored.get("m2")) == PARIS.localize(
            datetime(2026, 10, 26, 20, 0)
        )
        assert restored_reminders.is_scheduled("m1", "1")
        assert "m2" in restored_reminders

    @pytest.mark.asyncio
    async def test_duplicate_roster_entries_collapsed(self, tmp_path):
        record = {
            "dateToken": "demain",
            "timeLabel": "18h",
            "location": "Laennec",
            "info": None,
            "author": {"id": "100"},
            "roster": [{"id": "1"}, {"id": "2"}, {"id": "1"}],
            "createdAt": int(NOW.timestamp() * 1000),
        }
        (tmp_path / EVENTS_FILE).write_text(json.dumps([["m1", record]]), encoding="utf-8")

        snapshot = await PersistenceGateway(tmp_path).load()
        assert [p.user_id for p in snapshot.events[0].roster] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_anchor_round_trip(self, tmp_path):
        store, registry = populated_stores()
        gateway = PersistenceGateway(tmp_path)
        await gateway.save(store, registry)

        snapshot = await gateway.load()
        events = {event.key: event for event in snapshot.events}
        assert events["m1"].anchored_at is None
        assert events["m2"].anchored_at == NOW + timedelta(minutes=5)

    @pytest.mark.asyncio
    async def test_missing_anchor_falls_back_to_edit_time(self, tmp_path):
        edited = NOW + timedelta(days=1)
        record = {
            "dateToken": "demain",
            "timeLabel": "18h",
            "location": "Laennec",
            "author": {"id": "100"},
            "roster": [],
            "createdAt": int(NOW.timestamp() * 1000),
            "editedAt": int(edited.timestamp() * 1000),
        }
        (tmp_path / EVENTS_FILE).write_text(json.dumps([["m1", record]]), encoding="utf-8")

        snapshot = await PersistenceGateway(tmp_path).load()
        assert snapshot.events[0].anchored_at == edited

    @pytest.mark.asyncio
    async def test_platform_time_error_raises(self, tmp_path):
        store, registry = populated_stores()
        gateway = PersistenceGateway(tmp_path)
        await gateway.save(store, registry)

        with patch("sessions.persistence.from_millis", side_effect=OSError("Value too large")):
            with pytest.raises(CorruptDataError):
                await gateway.load()

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, tmp_path):
        (tmp_path / EVENTS_FILE).write_text('[["m1", {"dateToken": ', encoding="utf-8")
        with pytest.raises(CorruptDataError):
            await PersistenceGateway(tmp_path).load()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "events,reminders",
        [
            ('{"m1": {}}', "[]"),
            ('[["m1", {"dateToken": "demain"}]]', "[]"),
            ("[]", '[["m1", [["u1"]]]]'),
            ("[]", '[["m1", [["u1", "soon"]]]]'),
            ("42", "[]"),
            ('[["m1", {"dateToken": null, "timeLabel": "18h", "location": "Laennec", '
             '"author": {"id": "1"}, "roster": [], "createdAt": 0}]]', "[]"),
            ('[["m1", {"dateToken": "demain", "timeLabel": "18h", "location": 7, '
             '"author": {"id": "1"}, "roster": [], "createdAt": 0}]]', "[]"),
            ('[["m1", {"dateToken": "demain", "timeLabel": "18h", "location": "Laennec", '
             '"info": ["Bloc"], "author": {"id": "1"}, "roster": [], "createdAt": 0}]]', "[]"),
            ("[]", '[["m1", [["u1", 1e300]]]]'),
        ],
    )
    async def test_malformed_shape_raises(self, tmp_path, events, reminders):
        (tmp_path / EVENTS_FILE).write_text(events, encoding="utf-8")
        (tmp_path / REMINDERS_FILE).write_text(reminders, encoding="utf-8")
        with pytest.raises(CorruptDataError):
            await PersistenceGateway(tmp_path).load()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
