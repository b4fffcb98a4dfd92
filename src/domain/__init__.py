"""
Domain layer for contact form submissions.

This layer contains:
- Data models (type-safe structures)
- Admission control (per-client rate limiting)
- Input validation
- The contact request pipeline
"""
