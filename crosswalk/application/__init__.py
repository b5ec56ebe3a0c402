"""Application layer: waterfall matchers and the matching service."""
