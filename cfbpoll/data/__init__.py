"""Upstream season data: models, API client, persistent cache, and storage."""
