import folium

TILES = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"
ATTRIBUTION = "© OpenStreetMap contributors"


def build_map(lat, lon, bbox=None, label=None):
    """Folium map centred on the location, with the bounding box drawn when known."""
    m = folium.Map(location=[lat, lon], zoom_start=6 if bbox is None else 9, tiles=TILES, attr=ATTRIBUTION)
    folium.Marker(
        [lat, lon],
        popup=label or f"{lat:.4f}, {lon:.4f}",
        icon=folium.Icon(color="blue", icon="crosshairs", prefix="fa"),
    ).add_to(m)

    if bbox is not None:
        bounds = [[bbox.lat_min, bbox.lon_min], [bbox.lat_max, bbox.lon_max]]
        folium.Rectangle(bounds, color="#06b6d4", weight=2, fill=True, fill_opacity=0.1).add_to(m)
        m.fit_bounds(bounds)

    # Clicking shows the coordinates to pick as a new location
    m.add_child(folium.LatLngPopup())
    return m


def render_map(lat, lon, bbox=None, label=None):
    return build_map(lat, lon, bbox, label).get_root().render()
