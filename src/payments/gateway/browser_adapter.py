"""Redirect gateway that opens the system web browser.

A plain GET redirect opens the payment link directly. A POST form is
written to a temporary HTML page that submits itself on load, which is
what the hidden merchant form does inside the fest website.

The browser loads the page after ``submit`` returns, so a page cannot be
deleted straight away. Pages are removed on ``release()``, when opening the
browser fails, and by a sweep of stale pages before each new hand-off (the
sweep also covers pages left by earlier runs of the command-line client).
"""

import html
import tempfile
import time
import webbrowser
from pathlib import Path

import structlog

from payments.gateway.port import RedirectForm, RedirectGateway, RedirectResult

logger = structlog.get_logger(__name__)

PAGE_PREFIX = "festcart-payment-"
STALE_AFTER_SECONDS = 600

_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Redirecting to payment gateway</title></head>
<body onload="document.forms[0].submit()">
<p>Redirecting to the payment gateway...</p>
<form action="{action}" method="{method}">
{inputs}
<noscript><button type="submit">Continue to payment</button></noscript>
</form>
</body>
</html>
"""


def render_form_page(form: RedirectForm) -> str:
    inputs = "\n".join(
        f'<input type="hidden" name="{html.escape(name)}" value="{html.escape(str(value))}">'
        for name, value in form.fields.items()
    )
    return _PAGE.format(
        action=html.escape(form.action),
        method=html.escape(form.method.lower()),
        inputs=inputs,
    )


def _remove(page: Path) -> None:
    try:
        page.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("payment_page_not_removed", page=str(page), error=str(exc))


class BrowserRedirectGateway(RedirectGateway):
    """Hands the user over to the gateway in their default browser."""

    def __init__(self, page_dir: str | Path | None = None, stale_after: float = STALE_AFTER_SECONDS) -> None:
        self.page_dir = Path(page_dir) if page_dir else Path(tempfile.gettempdir())
        self.stale_after = stale_after
        self.pages: list[Path] = []

    def submit(self, form: RedirectForm) -> RedirectResult:
        self.sweep()
        page = None
        if form.method.upper() == "GET" and not form.fields:
            target = form.action
        else:
            page = self._write_page(form)
            target = page.as_uri()

        logger.info("payment_redirect_opened", action=form.action, method=form.method)
        if not webbrowser.open(target):
            if page is not None:
                self.pages.remove(page)
                _remove(page)
            return RedirectResult(success=False, failure_reason="Could not open a web browser")
        return RedirectResult(success=True)

    def release(self) -> None:
        while self.pages:
            _remove(self.pages.pop())

    def sweep(self) -> None:
        """Delete redirect pages older than ``stale_after`` seconds."""
        cutoff = time.time() - self.stale_after
        for page in self.page_dir.glob(f"{PAGE_PREFIX}*.html"):
            try:
                stale = page.stat().st_mtime < cutoff
            except FileNotFoundError:
                continue
            if stale:
                _remove(page)

    def _write_page(self, form: RedirectForm) -> Path:
        with tempfile.NamedTemporaryFile(
            "w",
            suffix=".html",
            prefix=PAGE_PREFIX,
            dir=self.page_dir,
            delete=False,
            encoding="utf-8",
        ) as handle:
            handle.write(render_form_page(form))
        page = Path(handle.name)
        self.pages.append(page)
        return page
