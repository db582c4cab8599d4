from .config import AdminConfig, load_config
from .contracts import EventPatch, EventRecord

__all__ = ["AdminConfig", "load_config", "EventPatch", "EventRecord"]
