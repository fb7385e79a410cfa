from .dto import SessionOut
from .service import RefreshSessionService

__all__ = ["RefreshSessionService", "SessionOut"]
