"""Business logic services.

Services contain all business logic and are called by routes, scripts and
the event queue. Services accept their session factory and cache explicitly.
"""
