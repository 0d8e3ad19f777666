"""Data access managers for the resilience core.

Each module wraps one group of well-known store keys.  Managers accept
``KeyValueStore`` instances and raise domain exceptions (``LookupError``,
``ValidationError``, ``AtomicWriteError``), never HTTP exceptions -- that
translation is the router's responsibility.
"""
