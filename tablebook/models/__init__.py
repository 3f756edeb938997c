from tablebook.models.restaurant import Restaurant
from tablebook.models.table import Table
from tablebook.models.reservation import Reservation

__all__ = [
    "Restaurant",
    "Table",
    "Reservation",
]
