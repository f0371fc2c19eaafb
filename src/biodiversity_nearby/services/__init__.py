"""
Shared service utilities.

- http.py - pooled ``requests`` session with retry/backoff, and ``fetch_json``
"""
