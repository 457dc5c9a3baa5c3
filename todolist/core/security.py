import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str


class TokenError(Exception):
    kind = "invalid"


class MalformedTokenError(TokenError):
    kind = "malformed"


class ExpiredTokenError(TokenError):
    kind = "expired"


class InvalidSignatureError(TokenError):
    kind = "invalid_signature"


def _password_bytes(password: str) -> bytes:
    if not isinstance(password, str):
        raise TypeError("password must be a string")
    # bcrypt ignore tout ce qui dépasse 72 octets
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class AuthService:
    """Hash des mots de passe + émission/vérification des JWT.

    Construit une fois au démarrage avec les Settings; la clé ne change plus ensuite.
    """

    def __init__(self, secret: str, expire_minutes: int):
        self._secret = secret
        self._expire = timedelta(minutes=expire_minutes)

    @classmethod
    def from_settings(cls, settings) -> "AuthService":
        return cls(settings.JWT_SECRET, settings.JWT_EXPIRE_MIN)

    def hash_password(self, password: str) -> str:
        return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode()

    def verify_password(self, password: str, password_hash: str) -> bool:
        if not isinstance(password, str) or not isinstance(password_hash, str):
            return False
        try:
            return bcrypt.checkpw(_password_bytes(password), password_hash.encode())
        except ValueError:
            # hash stocké invalide
            return False

    def issue_token(self, user_id: str, email: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "user_id": user_id,
            "email": email,
            "iat": now,
            "exp": now + self._expire,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify_token(self, token: str) -> Identity:
        # Structure d'abord: un token illisible n'est pas un problème de signature
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except (JWTError, AttributeError, TypeError) as exc:
            raise MalformedTokenError(str(exc)) from exc

        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError as exc:
            raise ExpiredTokenError(str(exc)) from exc
        except JWTClaimsError as exc:
            # signature correcte mais claims inexploitables (exp non numérique...)
            raise MalformedTokenError(str(exc)) from exc
        except JWTError as exc:
            raise InvalidSignatureError(str(exc)) from exc

        user_id = payload.get("user_id")
        email = payload.get("email")
        if not isinstance(user_id, str) or not isinstance(email, str):
            raise MalformedTokenError("token payload is missing identity claims")

        return Identity(user_id=user_id, email=email)
