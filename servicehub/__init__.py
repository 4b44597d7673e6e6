"""
Backend package for the servicehub API.

This package provides a FastAPI application over a small schema of
profiles, appointments, projects and testimonials, plus the Meta
(Facebook/Instagram) OAuth callback and a scheduled content sync.
"""
