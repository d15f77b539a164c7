import json
import logging
import threading

from django.conf import settings

logger = logging.getLogger(__name__)

_initialized = False
_init_lock = threading.Lock()


def init_firebase() -> bool:
    """Initialise the default firebase_admin app once; False when credentials are absent."""
    global _initialized
    if _initialized:
        return True
    with _init_lock:
        if _initialized:
            return True
        try:
            import firebase_admin
            from firebase_admin import credentials

            if firebase_admin._apps:
                _initialized = True
                return True

            service_account_path = getattr(settings, "FCM_SERVICE_ACCOUNT_FILE", "")
            service_account_json = getattr(settings, "FCM_SERVICE_ACCOUNT_JSON", "")
            project_id = getattr(settings, "FCM_PROJECT_ID", "")

            if service_account_json:
                cred = credentials.Certificate(json.loads(service_account_json))
                firebase_admin.initialize_app(cred, {"projectId": project_id} if project_id else None)
            elif service_account_path:
                cred = credentials.Certificate(service_account_path)
                firebase_admin.initialize_app(cred, {"projectId": project_id} if project_id else None)
            else:
                logger.info("Firebase credentials are not configured. Push and Google sign-in are disabled.")
                return False

            _initialized = True
            return True
        except Exception:
            logger.exception("Failed to initialize Firebase app")
            return False
