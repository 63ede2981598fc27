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

"""
Persistence Module

Snapshots the event store and the reminder registry to two JSON files and
reads them back at startup.

Events file:    [[key, {dateToken, timeLabel, location, info, author,
                        roster, createdAt, editedAt}], ...]
Reminders file: [[key, [[userId, fireAtEpochMillis], ...]], ...]

Each file is written to a temporary sibling and renamed over the previous
one, so a reader only ever sees a complete snapshot.
"""

import asyncio
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

import pytz

from .errors import CorruptDataError
from .models import Event, UserIdentity
from .reminders import ReminderRegistry
from .store import EventStore

logger = logging.getLogger("grimpebot.sessions.persistence")

EVENTS_FILE = "events.json"
REMINDERS_FILE = "reminders.json"


@dataclass
class Snapshot:
    """Contents of both snapshot files."""

    events: list[Event] = field(default_factory=list)
    reminders: list[tuple[str, dict[str, datetime]]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.events and not self.reminders


def to_millis(instant: datetime) -> int:
    return int(instant.timestamp() * 1000)


def from_millis(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=pytz.UTC)


def identity_to_record(identity: UserIdentity) -> dict[str, Any]:
    return {
        "id": identity.user_id,
        "username": identity.username,
        "displayName": identity.display_name,
        "avatar": identity.avatar_url,
    }


def identity_from_record(record: dict[str, Any]) -> UserIdentity:
    return UserIdentity(
        user_id=str(record["id"]),
        username=record.get("username", ""),
        display_name=record.get("displayName", ""),
        avatar_url=record.get("avatar"),
    )


def event_to_record(event: Event) -> list:
    return [
        event.key,
        {
            "dateToken": event.date_token,
            "timeLabel": event.time_label,
            "location": event.location,
            "info": event.info,
            "author": identity_to_record(event.author),
            "roster": [identity_to_record(p) for p in event.roster],
            "createdAt": to_millis(event.created_at),
            "editedAt": to_millis(event.edited_at) if event.edited_at else None,
            "anchoredAt": to_millis(event.anchored_at) if event.anchored_at else None,
        },
    ]


def _text(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string, got {type(value).__name__}")
    return value


def _optional_text(value: Any, name: str) -> Optional[str]:
    return None if value is None else _text(value, name)


def event_from_record(record: list) -> Event:
    key, data = record
    roster: list[UserIdentity] = []
    seen = set()
    for entry in data["roster"]:
        identity = identity_from_record(entry)
        if identity.user_id not in seen:
            seen.add(identity.user_id)
            roster.append(identity)

    edited_at = data.get("editedAt")
    # Snapshots without anchoredAt anchored relative tokens on editedAt
    anchored_at = data.get("anchoredAt", edited_at)
    return Event(
        key=str(key),
        date_token=_text(data["dateToken"], "dateToken"),
        time_label=_text(data["timeLabel"], "timeLabel"),
        location=_text(data["location"], "location"),
        info=_optional_text(data.get("info"), "info"),
        author=identity_from_record(data["author"]),
        created_at=from_millis(data["createdAt"]),
        roster=roster,
        edited_at=from_millis(edited_at) if edited_at is not None else None,
        anchored_at=from_millis(anchored_at) if anchored_at is not None else None,
    )


def reminders_to_record(key: str, entries: dict[str, datetime]) -> list:
    return [key, [[user_id, to_millis(fire_at)] for user_id, fire_at in entries.items()]]


def reminders_from_record(record: list) -> tuple[str, dict[str, datetime]]:
    key, entries = record
    return str(key), {str(user_id): from_millis(millis) for user_id, millis in entries}


def _write_atomic(path: Path, payload: Any) -> None:
    """Write JSON to a temp file in the same directory, then rename it over `path`."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def _read_json(path: Path) -> Optional[Any]:
    if not path.exists():
        return None
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptDataError(f"Unreadable snapshot {path.name}: {e}") from e


class PersistenceGateway:
    """Durable storage for both session stores."""

    def __init__(self, data_dir: Union[str, Path]):
        """
        Initialize the gateway.

        Args:
            data_dir: Directory holding the snapshot files (created on first save)
        """
        self.data_dir = Path(data_dir)
        self.events_path = self.data_dir / EVENTS_FILE
        self.reminders_path = self.data_dir / REMINDERS_FILE

    async def save(self, events: EventStore, reminders: ReminderRegistry) -> None:
        """
        Overwrite both snapshots with the current store contents.

        The payloads are built before the first await, so the snapshot is
        consistent with the moment `save` was called.
        """
        events_payload = [event_to_record(event) for event in events.events()]
        reminders_payload = [
            reminders_to_record(key, entries) for key, entries in reminders.items()
        ]

        await asyncio.to_thread(_write_atomic, self.events_path, events_payload)
        await asyncio.to_thread(_write_atomic, self.reminders_path, reminders_payload)
        logger.debug(
            f"Saved {len(events_payload)} event(s), "
            f"{len(reminders_payload)} reminder set(s) to {self.data_dir}"
        )

    async def load(self) -> Snapshot:
        """
        Read both snapshots.

        Returns:
            Snapshot, empty when nothing was saved before

        Raises:
            CorruptDataError: If a snapshot exists but cannot be parsed
        """
        raw_events = await asyncio.to_thread(_read_json, self.events_path)
        raw_reminders = await asyncio.to_thread(_read_json, self.reminders_path)

        try:
            events = [event_from_record(record) for record in raw_events or []]
            reminders = [reminders_from_record(record) for record in raw_reminders or []]
        except (AttributeError, KeyError, TypeError, ValueError, OverflowError, OSError) as e:
            raise CorruptDataError(f"Malformed snapshot in {self.data_dir}: {e}") from e

        logger.info(
            f"Loaded {len(events)} event(s) and {len(reminders)} reminder set(s) "
            f"from {self.data_dir}"
        )
        return Snapshot(events=events, reminders=reminders)
