from .apps import VerificationServer, parse_verify_body

__all__ = [
    "VerificationServer",
    "parse_verify_body",
]
