"""Task gating and workflow ordering engine."""
