"""HTTP routes of the RezKyoo API."""
