from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from circulation.services.interfaces import NotificationService


class User:
    """A library patron bound to the channel used to reach them.

    ``user_id`` and ``notification_service`` are fixed at construction time.
    Validation happens when the user is registered, not here, so an invalid
    user can still be built and handed to the library to be rejected.
    """

    def __init__(self, name: Optional[str], user_id: Optional[str],
                 notification_service: Optional["NotificationService"]) -> None:
        self.name = name
        self._user_id = user_id
        self._notification_service = notification_service

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def notification_service(self) -> Optional["NotificationService"]:
        return self._notification_service

    def send_notification(self, message: str) -> None:
        """Deliver ``message`` through the bound notification service.

        Raises NotificationError when the service cannot deliver it.
        """
        self._notification_service.notify_user(self._user_id, message)

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.name} ({self._user_id})"

    def to_dict(self) -> dict:
        return {"user_id": self._user_id, "name": self.name}
