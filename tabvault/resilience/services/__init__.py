"""Long-running services of the resilience core.

- **timers**: cancellable periodic / one-shot timers on the event loop
- **autosave**: auto-save scheduler (debounce, failure backoff, manual trigger)
- **recovery**: crash detection and snapshot recovery
- **inactivity**: inactive-tab sweep and suspension
"""
