from .clock import resolve_current_time, utc_now

__all__ = ["resolve_current_time", "utc_now"]
