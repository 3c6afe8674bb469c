"""Map marker geocoding."""

from .geocode import GeocodeCache, Marker, MarkerBatch, NominatimGeocoder, build_markers, location_text

__all__ = ["GeocodeCache", "Marker", "MarkerBatch", "NominatimGeocoder", "build_markers", "location_text"]
