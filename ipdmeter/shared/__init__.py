"""Dataclasses, smoothing, geometry and persistence shared across IPD Meter."""
