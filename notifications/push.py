import logging
from dataclasses import dataclass
from typing import Dict

from core.firebase import init_firebase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushResult:
    OK = "ok"
    TOKEN_INVALID = "token_invalid"
    ERROR = "error"

    status: str
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == self.OK


class FirebasePushProvider:
    """Sends one message to one device token through Firebase Cloud Messaging."""

    # FCM error codes meaning the token will never work again.
    PERMANENT_TOKEN_ERRORS = ("registration-token-not-registered", "NOT_FOUND", "UNREGISTERED")

    def __init__(self):
        # Built on the dispatching thread, before any worker pool starts.
        init_firebase()

    def send(self, token: str, title: str, body: str, data: Dict[str, str]) -> PushResult:
        if not init_firebase():
            return PushResult(PushResult.ERROR, "Push delivery is not configured")

        from firebase_admin import messaging
        from firebase_admin.exceptions import FirebaseError

        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data=data,
            token=token,
        )
        try:
            message_id = messaging.send(message)
        except messaging.UnregisteredError as exc:
            return PushResult(PushResult.TOKEN_INVALID, str(exc))
        except FirebaseError as exc:
            error_code = str(getattr(exc, "code", "") or "")
            if any(code in error_code or code in str(exc) for code in self.PERMANENT_TOKEN_ERRORS):
                return PushResult(PushResult.TOKEN_INVALID, str(exc))
            logger.warning("FCM send failed token=%s code=%s", token[:12], error_code)
            return PushResult(PushResult.ERROR, str(exc))
        except Exception as exc:
            logger.exception("Unexpected FCM error token=%s", token[:12])
            return PushResult(PushResult.ERROR, str(exc))

        logger.debug("FCM message sent id=%s", message_id)
        return PushResult(PushResult.OK)
