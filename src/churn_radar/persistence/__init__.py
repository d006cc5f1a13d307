"""Persistence of the cumulative analysis state."""

from .state_store import StateStore, state_from_dict, state_to_dict

__all__ = ["StateStore", "state_to_dict", "state_from_dict"]
