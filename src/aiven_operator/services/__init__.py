"""Remote control-plane services."""
