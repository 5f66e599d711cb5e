"""Circulation - Service Package

Collaborators the Library talks to:
- Capability interfaces (interfaces.py)
- Review lookup over SQLite or HTTP (review_service.py)
- Console and webhook notifications (notification_service.py)
- HTTP client construction (http_client.py)
"""
