"""Google Calendar adapter."""
