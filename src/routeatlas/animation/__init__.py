"""Animation exports."""

from .trail_animator import TrailAnimator, TrailSegment, locate_segment, phase_for_tick, planar_distance

__all__ = ["TrailAnimator", "TrailSegment", "locate_segment", "phase_for_tick", "planar_distance"]
