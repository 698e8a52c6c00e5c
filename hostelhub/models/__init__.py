from .user import User, UserRole
from .hostel import Hostel, hostel_agents
from .room import Room
from .occupant import Occupant, PaymentStatus
from .booking import Booking, BookingStatus, CommissionStatus
from .agent import Agent, agent_businesses
from .activity import Activity
