"""Session and submission coordination client for the email automation agent."""
