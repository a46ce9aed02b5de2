"""arrqueue - Aggregate, classify and act on Sonarr/Radarr download queues."""

__version__ = "0.1.0"
