"""
===============================================================================
MAP BINDING (FOLIUM + STREAMLIT) — STORE LOCATION PICKER
===============================================================================

Purpose:
    Folium helpers for the store pages:
      - StoreMapBinding: renders the location picker map and turns map clicks
        into coordinates for the form controller.
      - Bounds / center / zoom helpers used by the store listing map.
      - A compact geocoder search box.

Key behaviors:
    - Explicit configuration:
        * Tiles, zoom and marker icon URLs come from a MapConfig passed to the
          binding. Nothing global is patched, so two maps on one page never
          share marker defaults.
    - Recenter on demand:
        * st_folium receives center/zoom on every render, which moves the
          existing map view without remounting the component.
    - Click-to-place:
        * st_folium returns the last click on every rerun. The binding keeps
          the last click it already handed out and only emits a click that
          differs from it. Every new click is emitted, latest wins.
        * No range validation; any point on the surface is accepted.

===============================================================================
"""

import math
from dataclasses import dataclass
from typing import Optional

import folium
from folium.plugins import Geocoder
from streamlit_folium import st_folium

from util.coord_util import Coordinate, DEFAULT_COORDINATE


OSM_TILES = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
OSM_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
)
LEAFLET_ICON_BASE = "https://cdnjs.cloudflare.com/ajax/libs/leaflet/1.7.1/images"


# =============================================================================
# CONFIGURATION + VIEW STATE
# =============================================================================
@dataclass(frozen=True)
class MapConfig:
    tiles: str = OSM_TILES
    attribution: str = OSM_ATTRIBUTION
    zoom: int = 13
    height: int = 400
    width: Optional[int] = None
    icon_url: str = f"{LEAFLET_ICON_BASE}/marker-icon.png"
    shadow_url: str = f"{LEAFLET_ICON_BASE}/marker-shadow.png"
    icon_size: tuple = (25, 41)
    icon_anchor: tuple = (12, 41)
    geocoder: bool = True


@dataclass
class MapViewState:
    """Viewport center and marker. The form controller keeps them in step."""
    center: Coordinate = DEFAULT_COORDINATE
    marker: Coordinate = DEFAULT_COORDINATE
    zoom: int = 13


# =============================================================================
# LOCATION PICKER
# =============================================================================
class StoreMapBinding:
    """
    Location picker bound to one form session.

    Parameters:
        config: MapConfig
            Tiles, zoom and marker icon settings for this map instance.
        state: MutableMapping
            Where the last consumed click is remembered (st.session_state).
        key: str
            Streamlit component key for st_folium.
    """

    def __init__(self, config: MapConfig, state, key: str = "store_map"):
        self.config = config
        self.state = state
        self.key = key
        self._click_key = f"{key}_last_click"
        self.state.setdefault(self._click_key, None)

    def marker_icon(self) -> folium.CustomIcon:
        return folium.CustomIcon(
            icon_image=self.config.icon_url,
            shadow_image=self.config.shadow_url,
            icon_size=self.config.icon_size,
            icon_anchor=self.config.icon_anchor,
        )

    def build_map(self, view: MapViewState) -> folium.Map:
        """Folium map with tiles and a single marker at view.marker."""
        m = folium.Map(
            location=view.center.as_list(),
            zoom_start=view.zoom,
            tiles=self.config.tiles,
            attr=self.config.attribution,
        )
        folium.Marker(
            location=view.marker.as_list(),
            icon=self.marker_icon(),
        ).add_to(m)
        if self.config.geocoder:
            add_small_geocoder(m)
        return m

    def read_click(self, output) -> Optional[Coordinate]:
        """
        Extract a new click from st_folium output.

        Returns:
            Coordinate for a click not seen before, otherwise None.
        """
        if not output:
            return None
        clicked = output.get("last_clicked")
        if not clicked:
            return None

        try:
            coord = Coordinate(float(clicked["lat"]), float(clicked["lng"]))
        except (KeyError, TypeError, ValueError):
            return None

        if self.state.get(self._click_key) == coord:
            return None
        self.state[self._click_key] = coord
        return coord

    def render(self, view: MapViewState) -> Optional[Coordinate]:
        """Draw the map and return a new click, if the user made one."""
        if self.config.width:
            size = {"width": self.config.width}
        else:
            size = {"use_container_width": True}
        output = st_folium(
            self.build_map(view),
            center=view.center.as_list(),
            zoom=view.zoom,
            height=self.config.height,
            key=self.key,
            returned_objects=["last_clicked"],
            **size,
        )
        return self.read_click(output)


# =============================================================================
# MAP CONTROLS
# =============================================================================
def add_small_geocoder(fmap, position: str = "topright", width_px: int = 120, font_px: int = 12):
    """
    Add a small, collapsed geocoder search box to a Folium map.

    The search only pans the map. It never places the store marker.
    """
    Geocoder(collapsed=True, position=position, add_marker=False).add_to(fmap)

    fmap.get_root().html.add_child(folium.Element(f"""
    <style>
      .leaflet-control-geocoder-form input {{
          width: {width_px}px !important;
          font-size: {font_px}px !important;
      }}
    </style>
    """))


# =============================================================================
# BOUNDS CALCULATION HELPERS (STORE LISTING MAP)
# =============================================================================
def set_bounds_point(points):
    """
    Compute a bounding box for a list of [lat, lon] points.

    Returns:
        [[min_lat, min_lon], [max_lat, max_lon]]

    Raises:
        ValueError: if input is empty or contains no valid coordinates.
    """
    min_lat = float('inf')
    min_lon = float('inf')
    max_lat = float('-inf')
    max_lon = float('-inf')

    if not points:
        raise ValueError("Empty point input.")

    for pt in points:
        if not (isinstance(pt, (list, tuple)) and len(pt) == 2):
            continue
        try:
            lat = float(pt[0])
            lon = float(pt[1])
        except (TypeError, ValueError):
            continue

        # Skip out-of-range points so one bad record can't blow up the view
        if not (-90 <= lat <= 90 and -180 <= lon <= 180):
            continue

        min_lat = min(min_lat, lat)
        max_lat = max(max_lat, lat)
        min_lon = min(min_lon, lon)
        max_lon = max(max_lon, lon)

    if min_lat == float('inf'):
        raise ValueError("No valid coordinate data found.")

    return [[min_lat, min_lon], [max_lat, max_lon]]


def set_zoom(bounds, default: int = 13):
    """
    Approximate zoom level from the longitude span of bounds.

    A zero span (single store) returns `default`.
    """
    min_lat, min_lon = bounds[0]
    max_lat, max_lon = bounds[1]
    delta_lon = abs(max_lon - min_lon)
    if delta_lon == 0:
        return default
    zoom = math.log(360 / delta_lon, 2) - 1
    return max(int(zoom), 1)


def set_center(bounds):
    """
    Center point of [[min_lat, min_lon], [max_lat, max_lon]] as [lat, lon].

    Raises:
        ValueError: if bounds is not in the expected format.
    """
    if not bounds or len(bounds) != 2:
        raise ValueError("Bounds must be [[min_lat, min_lon], [max_lat, max_lon]].")
    min_lat, min_lon = bounds[0]
    max_lat, max_lon = bounds[1]
    return [(min_lat + max_lat) / 2, (min_lon + max_lon) / 2]
