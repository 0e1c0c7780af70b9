"""Session state and mode control."""
