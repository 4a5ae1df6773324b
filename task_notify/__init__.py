"""Push notification dispatcher for warehouse task lifecycle events."""
