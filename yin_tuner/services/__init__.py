"""Collaborators around the detector: audio sources and note mapping."""
