"""After a verified payment: list the new registrations and save receipts.

Like the cart screen, failures never reach the caller. They are logged and
shown as error toasts.
"""

from pathlib import Path

import structlog

from payments.registrations import Registration
from shared.api.client import FestApiClient
from shared.config import get_settings
from shared.exceptions import ApiError, FestcartError
from shared.toasts import ToastChannel

logger = structlog.get_logger(__name__)


class RegistrationHistory:
    def __init__(
        self,
        api: FestApiClient,
        toasts: ToastChannel,
        receipt_dir: str | Path | None = None,
    ) -> None:
        self.api = api
        self.toasts = toasts
        self.receipt_dir = Path(receipt_dir or get_settings().receipt_dir)

    def recent(self, user_id: str) -> list[Registration] | None:
        """The user's latest registrations, or ``None`` when they could not be loaded."""
        try:
            registrations = self.api.recent_registrations(user_id)
        except ApiError as exc:
            logger.warning("registrations_fetch_refused", user_id=user_id, detail=exc.detail)
            self.toasts.error("Could not fetch registration details")
            return None
        except FestcartError as exc:
            logger.warning("registrations_fetch_failed", user_id=user_id, error=str(exc))
            self.toasts.error("An error occurred while fetching registrations")
            return None

        self.toasts.success("Registrations retrieved successfully!")
        return registrations

    def download_receipt(self, registration_id: str) -> Path | None:
        """Save the PDF receipt as ``receipt_<id>.pdf`` in ``receipt_dir``."""
        try:
            content = self.api.download_receipt(registration_id)
        except FestcartError as exc:
            logger.warning("receipt_download_failed", registration_id=registration_id, error=str(exc))
            self.toasts.error("Could not download receipt")
            return None

        path = self.receipt_dir / f"receipt_{registration_id}.pdf"
        try:
            self.receipt_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as exc:
            logger.warning("receipt_save_failed", path=str(path), error=str(exc))
            self.toasts.error("Could not save receipt")
            return None

        logger.info("receipt_saved", registration_id=registration_id, path=str(path), size=len(content))
        return path
