"""
===============================================================================
STORE FORM STATE — DRAFT, VALIDATION, AND EDIT-SESSION LIFECYCLE
===============================================================================

Purpose:
    Owns everything the Add Store / Edit Store pages can change:
      - The StoreDraft (field values, coordinate, initial stock, photo)
      - The map view (center + marker) kept in step with the draft
      - Field validation errors
      - The session phase that drives loading / disabled / success UI

    The Streamlit pages keep one StoreFormController in st.session_state per
    create/edit session and route every user action through it.

Key behaviors:
    - Reducer-style actions:
        * on_field_change() writes exactly one field and then clears that
          field's error (clear_field_error()). Errors are not re-checked until
          the next submit.
        * set_coordinate() updates draft coordinate, marker and (optionally)
          map center in one step. Map clicks, typed "(lat, lng)" text and GPS
          fixes all go through it, so the "loc" text can never lag the marker.
    - validate() is pure: returns every violation at once, mutates nothing.
    - Phases:
          LOADING (edit only) -> READY -> VALIDATING -> SUBMITTING
                                            -> SUCCEEDED | FAILED -> READY
    - A failed submit never touches draft values.
    - Session tokens: async results (edit fetch, GPS fix, submit outcome)
      carry the token of the session that started them. Results for a closed
      or replaced session are dropped.

===============================================================================
"""

import base64
import logging
import re
import uuid
from dataclasses import dataclass, replace
from typing import Optional

from util.coord_util import Coordinate, DEFAULT_COORDINATE, format_coordinate, parse_coordinate
from util.geolocation_util import FIXED
from util.map_util import MapViewState


logger = logging.getLogger("StoreFormController")


# =============================================================================
# MODES / PHASES
# =============================================================================
CREATE = "create"
UPDATE = "update"

LOADING = "loading"
READY = "ready"
VALIDATING = "validating"
SUBMITTING = "submitting"
SUCCEEDED = "succeeded"
FAILED = "failed"

STOCK_FIELDS = ("stock_roll_on", "stock_20ml", "stock_30ml")
TEXT_FIELDS = ("name", "address", "num")
FIELDS = TEXT_FIELDS + ("loc", "image") + STOCK_FIELDS

PHONE_RE = re.compile(r"[0-9]{10,13}")

CHECK_FORM_MESSAGE = "Please check the form and try again."


# =============================================================================
# DRAFT TYPES
# =============================================================================
class _NoChange:
    """Image marker for an edit where the user has not picked a new photo."""

    def __repr__(self):
        return "NO_CHANGE"

    def __bool__(self):
        return False


NO_CHANGE = _NoChange()


@dataclass(frozen=True)
class UploadedImage:
    filename: str
    content: bytes
    mime_type: str = "application/octet-stream"

    def data_url(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class StoreDraft:
    name: str = ""
    address: str = ""
    num: str = ""
    coordinate: Coordinate = DEFAULT_COORDINATE
    stock_roll_on: int = 0
    stock_20ml: int = 0
    stock_30ml: int = 0
    image: object = None

    @property
    def loc(self) -> str:
        return format_coordinate(*self.coordinate)


@dataclass(frozen=True)
class Notice:
    kind: str  # "success" | "error" | "warning"
    message: str
    auto_close: bool = True
    blocking: bool = False


def as_count(value) -> Optional[int]:
    # Stock counters: non-negative whole numbers (ints or digit strings).
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float) and value.is_integer():
        return int(value) if value >= 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


# =============================================================================
# CONTROLLER
# =============================================================================
class StoreFormController:
    """
    State for one Add Store or Edit Store session.

    Parameters:
        mode: CREATE or UPDATE
        store_id: backend id of the store being edited (UPDATE only)
        fallback: coordinate used until a real location is known
        zoom: initial map zoom
    """

    def __init__(self, mode: str, store_id=None, fallback: Coordinate = DEFAULT_COORDINATE, zoom: int = 13):
        if mode not in (CREATE, UPDATE):
            raise ValueError(f"Unknown form mode: {mode}")

        self.mode = mode
        self.store_id = store_id
        self.draft = StoreDraft(
            coordinate=fallback,
            image=NO_CHANGE if mode == UPDATE else None,
        )
        self.view = MapViewState(center=fallback, marker=fallback, zoom=zoom)
        self.errors = {}
        self.notice = None
        self.preview = None
        self.server_preview = None
        self.fetch_failed = False
        self.phase = LOADING if mode == UPDATE else READY
        self.token = uuid.uuid4().hex
        self.closed = False

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------
    def is_current(self, token) -> bool:
        """True if `token` belongs to this (still open) session."""
        return not self.closed and token == self.token

    def _accepts(self, token, action: str) -> bool:
        if token is None or self.is_current(token):
            return True
        logger.info("Dropping late %s for a closed or replaced session", action)
        return False

    def close(self):
        """End the session. Late async results are ignored from now on."""
        self.closed = True

    @property
    def is_editable(self) -> bool:
        if self.closed or self.fetch_failed:
            return False
        return self.phase in (READY, FAILED)

    @property
    def is_submitting(self) -> bool:
        return self.phase == SUBMITTING

    # -------------------------------------------------------------------------
    # Field edits
    # -------------------------------------------------------------------------
    def clear_field_error(self, field: str):
        self.errors.pop(field, None)

    def on_field_change(self, field: str, value) -> bool:
        """
        Write one field and clear its error.

        Returns False when the edit was refused (session not editable, or an
        unparseable "loc" text, which records a loc error instead).
        """
        if field not in FIELDS:
            raise KeyError(f"Unknown store field: {field}")
        if field in STOCK_FIELDS and self.mode != CREATE:
            raise ValueError(f"{field} can only be set when adding a store")
        if not self.is_editable:
            logger.info("Ignoring change to %s while %s", field, self.phase)
            return False

        if field == "loc":
            coord = parse_coordinate(value)
            if coord is None:
                self.errors["loc"] = "Location must look like (lat, lng)"
                return False
            self.set_coordinate(coord, recenter=True)
            return True

        if field == "image":
            self._change_image(value)
        else:
            self.draft = replace(self.draft, **{field: value})

        self.clear_field_error(field)
        return True

    def _change_image(self, image):
        if image is None:
            # Picker cleared: an edit falls back to the stored photo
            if self.mode == UPDATE:
                self.draft = replace(self.draft, image=NO_CHANGE)
                self.preview = self.server_preview
            else:
                self.draft = replace(self.draft, image=None)
                self.preview = None
            return

        self.draft = replace(self.draft, image=image)
        self.preview = image.data_url()

    # -------------------------------------------------------------------------
    # Location
    # -------------------------------------------------------------------------
    def set_coordinate(self, coord: Coordinate, recenter: bool = False):
        """Move draft coordinate and marker (and the viewport when recentering)."""
        coord = Coordinate(float(coord[0]), float(coord[1]))
        self.draft = replace(self.draft, coordinate=coord)
        self.view = replace(
            self.view,
            marker=coord,
            center=coord if recenter else self.view.center,
        )
        self.clear_field_error("loc")

    def map_clicked(self, coord: Coordinate) -> bool:
        if not self.is_editable:
            return False
        self.set_coordinate(coord, recenter=False)
        return True

    def apply_geolocation(self, result, token=None) -> bool:
        """
        Adopt a geolocation result.

        FIXED: the returned coordinate becomes center, marker and draft in one
        step. UNAVAILABLE / DENIED: a single notice, draft untouched.
        """
        if not self._accepts(token, "geolocation result"):
            return False
        if not result.is_terminal:
            return False

        if result.status == FIXED:
            if not self.is_editable:
                return False
            self.set_coordinate(result.coordinate, recenter=True)
            return True

        self.notice = Notice("error", result.message, auto_close=False)
        return False

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------
    def validate(self) -> dict:
        """Return {field: message} for every rule the draft breaks."""
        draft = self.draft
        errors = {}

        if not str(draft.name or "").strip():
            errors["name"] = "Store name is required"

        if not str(draft.address or "").strip():
            errors["address"] = "Address is required"

        num = str(draft.num or "")
        if not num.strip():
            errors["num"] = "Phone number is required"
        elif self.mode == UPDATE and not PHONE_RE.fullmatch(num):
            errors["num"] = "Phone number is invalid (10-13 digits)"

        if self.mode == CREATE:
            for field in STOCK_FIELDS:
                if as_count(getattr(draft, field)) is None:
                    errors[field] = "Stock must be a whole number of 0 or more"

        return errors

    # -------------------------------------------------------------------------
    # Edit-mode hydration
    # -------------------------------------------------------------------------
    def hydrate(self, record: dict, token=None, image_base_url: str = None) -> bool:
        """Fill the draft from a fetched store record (LOADING -> READY)."""
        if not self._accepts(token, "store record"):
            return False

        coord = parse_coordinate(record.get("loc"))
        if coord is None:
            logger.warning("Store %s has no parseable loc: %r", self.store_id, record.get("loc"))
            coord = self.draft.coordinate

        self.draft = replace(
            self.draft,
            name=str(record.get("name") or ""),
            address=str(record.get("address") or ""),
            num=str(record.get("num") or ""),
            image=NO_CHANGE,
        )
        self.set_coordinate(coord, recenter=True)

        image_path = record.get("image")
        if image_path:
            base = (image_base_url or "").rstrip("/")
            self.server_preview = f"{base}/{str(image_path).lstrip('/')}" if base else str(image_path)
            self.preview = self.server_preview

        self.phase = READY
        return True

    def hydrate_failed(self, message: str, token=None) -> bool:
        """Edit fetch failed: blocking notice, nothing to edit."""
        if not self._accepts(token, "fetch failure"):
            return False
        self.fetch_failed = True
        self.phase = READY
        self.notice = Notice("error", message, auto_close=False, blocking=True)
        return True

    # -------------------------------------------------------------------------
    # Submit
    # -------------------------------------------------------------------------
    def begin_submit(self) -> bool:
        """
        Validate and enter SUBMITTING.

        Returns False when a submit is already running, the session is not
        editable, or validation failed (errors + notice are set then).
        """
        if self.phase == SUBMITTING or not self.is_editable:
            logger.info("Submit refused while %s", self.phase)
            return False

        self.phase = VALIDATING
        errors = self.validate()
        if errors:
            self.errors = errors
            self.notice = Notice("error", CHECK_FORM_MESSAGE, auto_close=False)
            self.phase = READY
            return False

        self.errors = {}
        self.notice = None
        self.phase = SUBMITTING
        return True

    def finish_submit(self, outcome, token=None, success_message: str = None) -> bool:
        """Apply a SubmissionOutcome. The draft is never modified here."""
        if not self._accepts(token, "submission outcome"):
            return False

        if outcome.kind == "success":
            self.phase = SUCCEEDED
            if success_message:
                self.notice = Notice("success", success_message, auto_close=True)
            return True

        self.phase = FAILED
        if outcome.kind == "validation" and outcome.field_errors:
            self.errors = dict(outcome.field_errors)
        self.notice = Notice("error", outcome.message, auto_close=False)
        self.phase = READY
        return True

    def take_notice(self) -> Optional[Notice]:
        """Return the pending notice; non-blocking notices are shown once."""
        notice = self.notice
        if notice is not None and not notice.blocking:
            self.notice = None
        return notice
