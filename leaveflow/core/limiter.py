from slowapi import Limiter
from slowapi.util import get_remote_address

from leaveflow.core.config import settings

# Disabled under test so fixtures can log in repeatedly from the same client address
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.environment != "testing",
)
