"""
Shared service utilities.

- http.py - async HTTP client and retry policy used by every datasource
"""
