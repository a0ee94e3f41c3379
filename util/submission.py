"""
===============================================================================
SUBMISSION PIPELINE — SAVE A STORE DRAFT AND DECIDE WHAT HAPPENS NEXT
===============================================================================

Purpose:
    Sends a validated StoreDraft to the backend and turns whatever happens
    into one of three outcomes:

        Success(record)                         -> saved
        ValidationRejected(message, errors)     -> backend said 400/422
        TransportFailure(message)               -> anything else

    No exception from the HTTP layer gets past submit().

Key behaviors:
    - Create sends POST /stores; update sends PUT /stores/{id}.
    - After success:
        * Create  -> go to the store list immediately.
        * Update  -> show the success notice, then go to the store list
                     after `redirect_delay` seconds (3 by default, configurable
                     through STORE_REDIRECT_DELAY).
    - The saved record is handed back but not cached; the list page refetches.
    - run_submission() is the submit-button handler: re-entry guard, client
      validation (no network call when invalid), submit, apply outcome.

===============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from api.store_api import StoreApiError
from api.store_payloads import build_store_payload
from util.form_state import CREATE, UPDATE


DEFAULT_REDIRECT_DELAY = 3.0
STORE_LIST_PAGE = "stores"

CREATE_SUCCESS_MESSAGE = "Store added successfully!"
UPDATE_SUCCESS_MESSAGE = "Store updated! You will be redirected..."

logger = logging.getLogger("StoreSubmitter")


# =============================================================================
# OUTCOMES
# =============================================================================
@dataclass(frozen=True)
class Success:
    record: Any = None
    kind: str = "success"


@dataclass(frozen=True)
class ValidationRejected:
    message: str
    field_errors: dict = field(default_factory=dict)
    kind: str = "validation"


@dataclass(frozen=True)
class TransportFailure:
    message: str
    kind: str = "transport"


@dataclass(frozen=True)
class Redirect:
    target: str
    delay: float
    notice: str


# =============================================================================
# SUBMITTER
# =============================================================================
class StoreSubmitter:
    """
    Parameters:
        client: StoreApiClient (or anything with create_store/update_store)
        redirect_delay: seconds to wait after a successful update
    """

    def __init__(self, client, redirect_delay: float = DEFAULT_REDIRECT_DELAY):
        self.client = client
        self.redirect_delay = float(redirect_delay)

    def submit(self, draft, mode: str, store_id=None):
        data, files = build_store_payload(draft, mode)

        try:
            if mode == CREATE:
                record = self.client.create_store(data, files)
            elif mode == UPDATE:
                if store_id is None:
                    raise ValueError("store_id is required to update a store")
                record = self.client.update_store(store_id, data, files)
            else:
                raise ValueError(f"Unknown form mode: {mode}")

        except StoreApiError as e:
            if e.is_validation:
                logger.warning("Store %s rejected: %s", mode, e.message)
                return ValidationRejected(f"Error: {e.message}", dict(e.field_errors))
            return TransportFailure(f"Error: {e.message}")

        logger.info("Store %s succeeded", mode)
        return Success(record)

    def after_success(self, mode: str) -> Redirect:
        if mode == CREATE:
            return Redirect(STORE_LIST_PAGE, 0.0, CREATE_SUCCESS_MESSAGE)
        return Redirect(STORE_LIST_PAGE, self.redirect_delay, UPDATE_SUCCESS_MESSAGE)


# =============================================================================
# SUBMIT HANDLER
# =============================================================================
def run_submission(controller, submitter) -> Optional[Redirect]:
    """
    Handle one press of the save button.

    Returns:
        Redirect when the store was saved, otherwise None (controller holds
        the errors / notice to display).
    """
    if not controller.begin_submit():
        return None

    token = controller.token
    draft = controller.draft
    outcome = submitter.submit(draft, controller.mode, controller.store_id)

    if outcome.kind == "success":
        redirect = submitter.after_success(controller.mode)
        if controller.finish_submit(outcome, token=token, success_message=redirect.notice):
            return redirect
        return None

    controller.finish_submit(outcome, token=token)
    return None
