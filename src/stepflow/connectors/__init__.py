"""Input connectors and the inbound message type."""
