"""HTTP API exposing the explorer to a dashboard."""
