# This project was developed with assistance from AI tools.
"""Context resolution and AI dispatch service."""
