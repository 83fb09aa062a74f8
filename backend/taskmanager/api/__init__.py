"""HTTP routers for the task manager API."""
