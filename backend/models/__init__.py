# Import all models so they register with SQLAlchemy Base.metadata
# This ensures Base.metadata.create_all() creates all tables

from models.user import User
from models.group import Group
from models.pact import Pact
from models.pact_participant import PactParticipant
from models.check_in import CheckIn
from models.roast_thread import RoastThread

__all__ = [
    "User",
    "Group",
    "Pact",
    "PactParticipant",
    "CheckIn",
    "RoastThread",
]
