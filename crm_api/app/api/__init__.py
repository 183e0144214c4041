"""
API package containing the HTTP routes.

``router.py`` exposes a single ``router`` that includes the endpoints of
every domain.
"""
