"""
===============================================================================
GEOLOCATION ADAPTER (STREAMLIT) — "USE CURRENT LOCATION"
===============================================================================

Purpose:
    Wraps the browser location API (navigator.geolocation, reached through
    streamlit_js_eval.get_geolocation) and normalizes whatever comes back into
    a single GeoResult shape:

        PENDING      -> request sent, browser has not answered yet
        FIXED        -> coordinate available
        UNAVAILABLE  -> browser has no geolocation capability
        DENIED       -> permission refused or the browser reported an error

Key behaviors:
    - One request per button press. The JS component is keyed by a request
      counter so every press runs a fresh, single-shot lookup.
    - While a request is in flight, another press is ignored.
    - No automatic retry. A terminal result closes the request; the user
      presses the button again to retry.
    - The provider never touches the draft. Callers hand the FIXED result to
      the form controller, which adopts the coordinate in one step.

Session-state dependencies:
    - '<prefix>_request_id'   : int counter of requests issued
    - '<prefix>_in_flight'    : bool, True between request and terminal result

===============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Optional

from util.coord_util import Coordinate


PENDING = "pending"
FIXED = "fixed"
UNAVAILABLE = "unavailable"
DENIED = "denied"

UNAVAILABLE_MESSAGE = "This browser does not support geolocation."
DENIED_MESSAGE = "Unable to get your location. Make sure GPS is enabled."

logger = logging.getLogger("GeolocationProvider")


@dataclass(frozen=True)
class GeoResult:
    status: str
    coordinate: Optional[Coordinate] = None
    message: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != PENDING


def normalize_position(raw) -> GeoResult:
    """
    Convert a raw get_geolocation() payload into a GeoResult.

    Payload shapes:
        None                                   -> PENDING
        {"coords": {"latitude", "longitude"}}  -> FIXED
        {"error": {"code": 0, ...}}            -> UNAVAILABLE (no geolocation API)
        {"error": {"code", "message"}}         -> DENIED (permission, timeout, no fix)
        anything else                          -> UNAVAILABLE
    """
    if raw is None:
        return GeoResult(PENDING)

    if not isinstance(raw, dict):
        return GeoResult(UNAVAILABLE, message=UNAVAILABLE_MESSAGE)

    coords = raw.get("coords")
    if isinstance(coords, dict):
        lat = coords.get("latitude")
        lng = coords.get("longitude")
        try:
            return GeoResult(FIXED, coordinate=Coordinate(float(lat), float(lng)))
        except (TypeError, ValueError):
            return GeoResult(UNAVAILABLE, message=UNAVAILABLE_MESSAGE)

    error = raw.get("error")
    if error:
        if isinstance(error, dict):
            code = error.get("code")
            detail = str(error.get("message") or "")
        else:
            code = None
            detail = str(error)
        # streamlit_js_eval reports a browser without navigator.geolocation as code 0
        if code == 0 or "not support" in detail.lower():
            return GeoResult(UNAVAILABLE, message=UNAVAILABLE_MESSAGE)
        logger.warning("Geolocation error: %s", detail)
        return GeoResult(DENIED, message=DENIED_MESSAGE)

    return GeoResult(UNAVAILABLE, message=UNAVAILABLE_MESSAGE)


class GeolocationProvider:
    """
    Single-shot geolocation requests bound to a state mapping.

    Parameters:
        state: MutableMapping
            Where request bookkeeping is kept (st.session_state in the app).
        locate: callable
            get_geolocation-compatible callable taking component_key=...
        prefix: str
            Namespace for state keys and component keys.
    """

    def __init__(self, state, locate=None, prefix: str = "geo"):
        if locate is None:
            from streamlit_js_eval import get_geolocation
            locate = get_geolocation
        self.state = state
        self.locate = locate
        self.prefix = prefix
        self.state.setdefault(self._key("request_id"), 0)
        self.state.setdefault(self._key("in_flight"), False)

    def _key(self, name: str) -> str:
        return f"{self.prefix}_{name}"

    @property
    def in_flight(self) -> bool:
        return bool(self.state[self._key("in_flight")])

    @property
    def component_key(self) -> str:
        return f"{self.prefix}_position_{self.state[self._key('request_id')]}"

    def request_current_position(self) -> bool:
        """Start a new request. Returns False if one is already in flight."""
        if self.in_flight:
            return False
        self.state[self._key("request_id")] += 1
        self.state[self._key("in_flight")] = True
        logger.info("Geolocation request %s started", self.state[self._key("request_id")])
        return True

    def poll(self) -> GeoResult:
        """
        Check the in-flight request.

        Returns PENDING until the browser answers, then the terminal result
        exactly once. With no request in flight, returns PENDING.
        """
        if not self.in_flight:
            return GeoResult(PENDING)

        result = normalize_position(self.locate(component_key=self.component_key))
        if result.is_terminal:
            self.state[self._key("in_flight")] = False
            logger.info("Geolocation request finished: %s", result.status)
        return result
