"""Dashboard package exposing app utilities."""

from .data import MapOptions, PreparedMapData, prepare_map_data

__all__ = ["MapOptions", "PreparedMapData", "prepare_map_data"]
