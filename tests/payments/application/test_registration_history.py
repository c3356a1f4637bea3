"""Tests for listing registrations and saving receipts after payment."""

import httpx
import pytest
from fake_backend import USER_ID
from payments.receipts import RegistrationHistory
from shared.api.client import FestApiClient


@pytest.fixture()
def history(api, toasts, tmp_path):
    return RegistrationHistory(api, toasts, receipt_dir=tmp_path / "receipts")


class TestRecent:
    def test_lists_registrations(self, history, backend, toasts):
        backend.add_registration(USER_ID, "reg-1", event_name="Code Sprint")
        backend.add_registration(USER_ID, "reg-2", event_name="Robo Race", amount=299)

        registrations = history.recent(USER_ID)

        assert [registration.id for registration in registrations] == ["reg-1", "reg-2"]
        assert registrations[1].amount == 299
        assert toasts.successes == ["Registrations retrieved successfully!"]

    def test_backend_refusal(self, history, backend, toasts):
        backend.fail("GET", "/api/payment/recent-registrations/", status_code=404)

        assert history.recent(USER_ID) is None
        assert toasts.errors == ["Could not fetch registration details"]

    def test_network_failure(self, toasts, tmp_path):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        api = FestApiClient(base_url="http://fest", http=httpx.Client(transport=httpx.MockTransport(handler)))

        assert RegistrationHistory(api, toasts, receipt_dir=tmp_path).recent(USER_ID) is None
        assert toasts.errors == ["An error occurred while fetching registrations"]


class TestDownloadReceipt:
    def test_saves_pdf_named_after_registration(self, history, backend, tmp_path):
        backend.add_registration(USER_ID, "reg-1", receipt=b"%PDF-1.4 paid")

        path = history.download_receipt("reg-1")

        assert path == tmp_path / "receipts" / "receipt_reg-1.pdf"
        assert path.read_bytes() == b"%PDF-1.4 paid"

    def test_unknown_registration(self, history, toasts, tmp_path):
        assert history.download_receipt("reg-404") is None
        assert toasts.errors == ["Could not download receipt"]
        assert not (tmp_path / "receipts").exists()

    def test_unwritable_directory(self, api, backend, toasts, tmp_path):
        backend.add_registration(USER_ID, "reg-1")
        blocker = tmp_path / "taken"
        blocker.write_text("not a directory", encoding="utf-8")

        assert RegistrationHistory(api, toasts, receipt_dir=blocker).download_receipt("reg-1") is None
        assert toasts.errors == ["Could not save receipt"]

    def test_directory_defaults_to_settings(self, api, toasts, monkeypatch, tmp_path):
        from shared.config import get_settings

        monkeypatch.setenv("FESTCART_RECEIPT_DIR", str(tmp_path))
        get_settings.cache_clear()

        assert RegistrationHistory(api, toasts).receipt_dir == tmp_path
