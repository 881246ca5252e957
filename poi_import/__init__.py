"""OSM POI Import — match local POIs against OpenStreetMap before import."""

__version__ = "0.1.0"
