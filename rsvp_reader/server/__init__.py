"""HTTP API for uploading books and fetching RSVP timelines."""
