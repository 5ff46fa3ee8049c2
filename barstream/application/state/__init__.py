"""Application state: per-instance indicator state and per-market registry."""
