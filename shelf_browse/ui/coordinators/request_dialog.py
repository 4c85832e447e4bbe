"""Request dialog shown over the shelf.

Request links inside item metadata open a panel whose content is fetched
from the link destination.  The received page is reduced to its content
area, cancel-style buttons are turned into close affordances and a form
found in the content is submitted through the fetch service so the result
replaces the dialog content instead of navigating away.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from shelf_browse.core.exceptions import TransportError
from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.core.models import OverlayKind
from shelf_browse.core.services.fetch_service import FetchHandle
from shelf_browse.ui.coordinators.overlay_coordinator import OverlayManager
from shelf_browse.ui.host import HostWindow
from shelf_browse.ui.view import ElementHandle, ViewDocument

logger = logging.getLogger(__name__)

__all__ = ["RequestDialog", "CANCEL_LABELS", "HIDDEN_PARAMETERS"]

CANCEL_LABELS = ("Cancel", "Close", "Done")

# Added to submitted forms so the server answers with dialog content.
HIDDEN_PARAMETERS = (("popup", "true"), ("redirect", "false"))

_BUTTON_XPATH = (".//*[contains(concat(' ', normalize-space(@class), ' '), ' btn ')"
                 " or contains(concat(' ', normalize-space(@class), ' '), ' button ')"
                 " or @role='button']")
_SUBMIT_XPATH = ".//input[@type='submit'] | .//button[@type='submit']"


class RequestDialog:
    """Fetch, normalize and display request pages in the dialog panel.

    Parameters
    ----------
    session : ShelfBrowseSession
    view : ViewDocument
    host : HostWindow
        Supplies ``run_in_thread`` for fetches and submissions.
    overlays : OverlayManager
    """

    def __init__(self, *, session: ShelfBrowseSession, view: ViewDocument, host: HostWindow,
                 overlays: OverlayManager) -> None:
        self._session = session
        self._view = view
        self._host = host
        self._overlays = overlays
        self._handle: Optional[FetchHandle] = None

    def container(self) -> Optional[ElementHandle]:
        display = self._view.find("shelf-browse display")
        return display.find("dialog-container") if display is not None else None

    # -------------------------------------------------------------- Public API
    def show(self, control: Optional[ElementHandle], container: Optional[ElementHandle] = None) -> None:
        """Open the dialog and load the destination of *control* into it."""
        container = container or self.container()
        if container is None:
            logger.error("show_request_dialog: missing .dialog-container")
            return
        url = None
        if control is not None:
            url = control.get("data-path") or control.get("href")
        dialog = container.find("dialog-contents", child=True)
        if dialog is None:
            logger.error("show_request_dialog: missing .dialog-contents")
            return
        self._overlays.open(OverlayKind.REQUEST_DIALOG, control, container, self.hide)
        dialog.empty().add_class("loading")
        if not url:
            logger.warning("show_request_dialog: control has no destination")
            self.update_dialog(dialog, "")
            return

        fetch = self._session.fetch_service
        self._handle = fetch.fetch_async(
            self._host.run_in_thread,
            lambda: fetch.get_text(url),
            lambda markup: self._received(dialog, markup),
            lambda error: self._received(dialog, self._error_markup(error)),
            url=url,
        )

    def hide(self, control: Optional[ElementHandle] = None, container: Optional[ElementHandle] = None) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._overlays.close(OverlayKind.REQUEST_DIALOG, control, container or self.container())

    def update_dialog(self, dialog: ElementHandle, markup: str) -> ElementHandle:
        """Replace the dialog content with the content area of *markup*."""
        received = self._view.parse_fragment(markup)
        received.add_class("dialog-wrapper")
        wrapper = (self.dialog_content(received, "popup-content")
                   or self.dialog_content(received, "page-content")
                   or self.dialog_content(received))

        if not wrapper.children() and not wrapper.text.strip():
            text = self._session.label("request_complete", "Request complete.")
            wrapper.append(wrapper.create("div", "dialog-inserted-text", text))

        buttons = wrapper.xpath(_BUTTON_XPATH)
        for button in buttons:
            self._dialog_cancel(button)

        form = wrapper.find(tag="form")
        if form is not None:
            self._prepare_form(dialog, form)

        dialog.empty().remove_class("loading")
        dialog.append(wrapper)

        if not any(button.displayed for button in buttons):
            done = wrapper.create("div", "dialog-inserted-done btn primary", "Done", role="button")
            wrapper.append(done)
            self._dialog_cancel(done)
        return wrapper

    @staticmethod
    def dialog_content(received: ElementHandle, classes: Optional[str] = None) -> Optional[ElementHandle]:
        """Content rooted at the first *classes* element, normalized under ``.dialog-wrapper``."""
        if classes:
            result = received.find(classes)
            if result is None:
                return None
        else:
            result = received
        if result.has_class("dialog-wrapper"):
            return result
        wrapper = result.create("div", "dialog-wrapper", result.element.text)
        for child in result.children():
            wrapper.append(child.detach())
        return wrapper

    # ------------------------------------------------------------- Internals
    def _received(self, dialog: ElementHandle, markup: str) -> None:
        self._handle = None
        self.update_dialog(dialog, markup)

    @staticmethod
    def _error_markup(error: TransportError) -> str:
        logger.warning("request dialog: %s", error)
        return error.payload or str(error)

    def _dialog_cancel(self, link: ElementHandle) -> None:
        if link.text.strip() not in CANCEL_LABELS:
            return
        link.remove_attr("href")
        link.bind("click", lambda event: self.hide(link))

    def _prepare_form(self, dialog: ElementHandle, form: ElementHandle) -> None:
        for name, value in HIDDEN_PARAMETERS:
            form.append(form.create("input", type="hidden", name=name, value=value))
        url = form.get("action") or ""
        method = form.get("method") or "POST"
        for submit in form.xpath(_SUBMIT_XPATH):
            submit.bind("click", lambda event: self._submit(event, dialog, form, url, method))

    def _submit(self, event, dialog: ElementHandle, form: ElementHandle, url: str, method: str) -> None:
        event.prevent_default()
        event.stop_propagation()
        data = form_fields(form)
        dialog.add_class("loading")
        for child in dialog.children():
            child.hide()
        logger.debug("submitting request form %s %s", method, url)
        fetch = self._session.fetch_service
        self._handle = fetch.fetch_async(
            self._host.run_in_thread,
            lambda: fetch.submit_form(url, method, data),
            lambda markup: self._received(dialog, markup),
            lambda error: self._received(dialog, self._error_markup(error)),
            url=url,
        )


def form_fields(form: ElementHandle) -> List[Tuple[str, str]]:
    """Successful controls of *form* as (name, value) pairs."""
    return list(form.element.form_values())
