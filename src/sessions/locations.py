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

"""Known climbing venues and location matching."""

import re

from .errors import LocationError
from .time_parser import normalize_token

VALID_LOCATIONS = (
    "Laennec",
    "Part Dieu",
    "Villeurbanne",
    "Climb Up Gerland",
    "Climb Up Confluence",
)


def _compact(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", normalize_token(value))


_LOOKUP = {_compact(name): name for name in VALID_LOCATIONS}


def validate_location(raw: str) -> str:
    """
    Match a raw location against the known venues.

    Case, accents, spaces and punctuation are ignored, so "part-dieu",
    "PARTDIEU" and "Part Dieu" all resolve to "Part Dieu".

    Raises:
        LocationError: If no venue matches
    """
    canonical = _LOOKUP.get(_compact(raw or ""))
    if canonical is None:
        raise LocationError(raw, VALID_LOCATIONS)
    return canonical
