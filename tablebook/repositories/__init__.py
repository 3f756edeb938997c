from tablebook.repositories.base import ReservationStore
from tablebook.repositories.memory import InMemoryReservationStore
from tablebook.repositories.sql import SqlReservationStore

__all__ = [
    "ReservationStore",
    "InMemoryReservationStore",
    "SqlReservationStore",
]
