"""HUD rendering."""
