"""Scoring weights, gate thresholds, and profile loading."""
