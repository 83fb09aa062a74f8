"""AI task manager backend package."""
