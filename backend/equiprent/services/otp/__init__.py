from .service import OtpService

__all__ = ["OtpService"]
