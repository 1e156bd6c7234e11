"""Run context, manifest and progress helpers."""
