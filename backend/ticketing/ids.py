# backend/ticketing/ids.py
import secrets
import uuid

# Crockford-style base32 without ambiguous characters; 20 chars = 100 bits
QR_ALPHABET = "ABCDEFGHJKMNPQRSTVWXYZ0123456789"
QR_PREFIX = "QR_"
QR_LENGTH = 20


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def new_qr_token() -> str:
    """
    Bearer token printed into the ticket QR code.
    Drawn from `secrets` so it cannot be guessed from ids or previous tokens;
    validity is only ever decided by looking the token up server-side.
    """
    return QR_PREFIX + "".join(secrets.choice(QR_ALPHABET) for _ in range(QR_LENGTH))
