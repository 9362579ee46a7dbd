"""Exporters for delivering spans to backends."""

from pfeil.exporter.otlp_exporter import build_otlp_exporter

__all__ = ["build_otlp_exporter"]
