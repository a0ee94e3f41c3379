"""
===============================================================================
STORE LIST (STREAMLIT) — ALL STORES + MAP OVERVIEW
===============================================================================

Purpose:
    Landing page after a store is added or updated. Refetches the list from
    the backend on every visit (nothing is cached after a save), shows all
    locatable stores on one map and opens the edit page per store.

===============================================================================
"""

import folium
import streamlit as st
from streamlit_folium import st_folium

from api.store_api import StoreApiError
from init_session import get_api_client
from steps.navigation import go_to, show_notice, take_flash
from util.coord_util import parse_coordinate
from util.input_util import fmt_string
from util.map_util import MapConfig, add_small_geocoder, set_bounds_point, set_center, set_zoom


def store_points(stores) -> list:
    """[(store, Coordinate)] for every store whose loc text parses."""
    points = []
    for store in stores:
        coord = parse_coordinate(store.get("loc"))
        if coord is not None:
            points.append((store, coord))
    return points


def stores_map(stores, config: MapConfig = None) -> folium.Map:
    """Overview map with one marker per locatable store, fitted to all of them."""
    config = config or MapConfig()
    points = store_points(stores)
    coords = [coord.as_list() for _, coord in points]

    lat, lng = st.session_state.get("default_location")
    center, zoom = [lat, lng], config.zoom
    if coords:
        try:
            bounds = set_bounds_point(coords)
            center, zoom = set_center(bounds), set_zoom(bounds, default=config.zoom)
        except ValueError:
            pass

    m = folium.Map(location=center, zoom_start=zoom, tiles=config.tiles, attr=config.attribution)
    for store, coord in points:
        folium.Marker(
            location=coord.as_list(),
            tooltip=fmt_string(store.get("name")),
            popup=fmt_string(store.get("address")),
        ).add_to(m)
    add_small_geocoder(m)
    return m


def store_list_page():
    st.markdown("### STORES 🏪")
    show_notice(take_flash())

    col_add, _ = st.columns([1.5, 5])
    with col_add:
        st.button("➕ Add store", type="primary", on_click=go_to, args=("add_store",))

    with st.spinner("Loading stores..."):
        try:
            stores = get_api_client().list_stores()
        except StoreApiError as e:
            st.error(f"Failed to load stores: {e.message}")
            return

    if not stores:
        st.info("No stores yet. Click **Add store** to register the first one.")
        return

    st_folium(stores_map(stores), height=380, use_container_width=True, key="stores_overview_map",
              returned_objects=[])

    st.write("")
    for store in stores:
        col_info, col_edit = st.columns([6, 1])
        with col_info:
            st.markdown(f"**{fmt_string(store.get('name'))}**  \n"
                        f"{fmt_string(store.get('address'))}  \n"
                        f"📞 {fmt_string(store.get('num'))}")
        with col_edit:
            st.button(
                "Edit",
                key=f"edit_store_{store.get('id')}",
                on_click=go_to,
                args=("edit_store", store.get("id")),
            )
        st.divider()
