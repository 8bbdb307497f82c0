"""
Tests package for the torrent relay backend.

- unit/: Layer-by-layer tests with the fake agent or fakes for collaborators
- integration/: Full upload, agent exit and sweep cycles through the Flask app
- fixtures/: The fake download agent and polling helpers
"""
