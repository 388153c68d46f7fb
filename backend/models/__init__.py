from models.users import User
from models.tour import Tour, TourStartDate
from models.review import Review
from models.booking import Booking
from models.log import Log

__all__ = ["User", "Tour", "TourStartDate", "Review", "Booking", "Log"]
