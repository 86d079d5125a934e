"""HTTP routes for Tutorbook."""
