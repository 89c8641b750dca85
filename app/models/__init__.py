from .user import User
from .session import Session
from .plan import Plan
from .join_request import JoinRequest
