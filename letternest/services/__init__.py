"""Business services for the newsletter pipeline."""
