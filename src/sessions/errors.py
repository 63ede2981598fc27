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
Session Errors

Exception hierarchy shared by the session engine. Messages are written to be
shown to the Discord user as-is.
"""


class SessionError(Exception):
    """Base class for every error raised by the session engine."""

    pass


class ValidationError(SessionError):
    """Raised when a date, time or location is rejected on create or edit."""

    pass


class DateError(ValidationError):
    """Raised when a date token cannot be resolved."""

    def __init__(self, token: str = ""):
        super().__init__(
            "Date invalide ! Utilisez : un jour (lundi, mardi...), "
            "une date (25/10), \"aujourd'hui\" ou \"demain\""
        )
        self.token = token


class TimeError(ValidationError):
    """Raised when a time token cannot be resolved or is out of range."""

    def __init__(self, token: str = ""):
        super().__init__(
            "Heure invalide ! Utilisez une heure entre 7h et 23h (ex: 18h30, 19h)"
        )
        self.token = token


class LocationError(ValidationError):
    """Raised when a location is not one of the known venues."""

    def __init__(self, location: str = "", valid: tuple = ()):
        choices = ", ".join(valid[:-1]) + f" ou {valid[-1]}" if valid else ""
        super().__init__(f"Lieu invalide ! Choisissez : {choices}")
        self.location = location


class NotFoundError(SessionError):
    """Raised when an operation references an unknown event key."""

    def __init__(self, key: str):
        super().__init__("Erreur: événement introuvable en mémoire.")
        self.key = key


class PastDueError(SessionError):
    """Raised when a reminder would fire now or in the past."""

    def __init__(self, key: str = ""):
        super().__init__("L'événement est déjà passé ou en cours !")
        self.key = key


class PermissionDeniedError(SessionError):
    """Raised when a privileged operation is attempted without privilege."""

    def __init__(self):
        super().__init__("Seuls les administrateurs peuvent modifier l'événement !")


class CorruptDataError(SessionError):
    """Raised when a persisted snapshot exists but cannot be parsed."""

    pass


class DeliveryError(SessionError):
    """Raised by presenters when a notification or message update fails."""

    pass
