"""Access token signing.

Session handling depends only on `TokenSigner`, so the algorithm can be
swapped without touching the session service.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from equizz import utils
from equizz.errors import TokenExpiredError, TokenInvalidError


class TokenSigner(ABC):
    @abstractmethod
    def sign(self, payload: dict[str, Any], ttl: timedelta) -> str:
        """Return a signed token carrying `payload` and valid for `ttl`."""

    @abstractmethod
    def verify(self, token: str) -> dict[str, Any]:
        """Return the decoded payload.

        Raises:
            TokenExpiredError: If the signature is valid but the token expired
            TokenInvalidError: For any other verification failure
        """


class JwtTokenSigner(TokenSigner):
    """HMAC-signed JWTs via python-jose."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    def sign(self, payload: dict[str, Any], ttl: timedelta) -> str:
        issued_at = utils.now()
        claims = {**payload, "iat": issued_at, "exp": issued_at + ttl}
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpiredError from e
        except JWTError as e:
            raise TokenInvalidError from e
