"""Host-side helpers: replay recorded events, linearize rejected arcs."""

from plasma_post.host.replay import linearize_arc, replay

__all__ = ["linearize_arc", "replay"]
