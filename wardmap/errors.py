"""Error kinds raised inside the map data pipeline."""


class MapDataError(Exception):
    """Base class for every error the map data pipeline raises."""


class FetchFailure(MapDataError):
    """The data provider could not deliver the document (network/transport)."""


class ParseFailure(MapDataError):
    """The delivered document is not a usable GeoJSON feature collection."""


class CacheCorruption(MapDataError):
    """A persisted cache entry could not be decoded."""


class SimplificationFailure(MapDataError):
    """Geometry processing failed while simplifying a dataset."""
