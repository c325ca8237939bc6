"""Business services: pricing core and the flows built on it."""
