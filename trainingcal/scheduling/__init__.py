"""Auto-rescheduling search."""
