# liftlog/deps/auth.py
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose.exceptions import ExpiredSignatureError, JWTError

from liftlog.errors import Unauthorized
from liftlog.security import decode_token

# Exposes Bearer auth in Swagger; tokens are issued by the identity provider
bearer = HTTPBearer(auto_error=False)

class IdentityGate:
    """
    Resolves the caller's identity for a single request.

    The token is decoded at most once; later calls return the memoized
    identity (or re-raise the memoized failure). One gate lives on
    `request.state` per request, so nothing is shared across requests.
    """

    def __init__(self, token: str | None):
        self._token = token
        self._identity: str | None = None
        self._failure: Unauthorized | None = None

    def resolve(self) -> str:
        if self._identity is not None:
            return self._identity
        if self._failure is not None:
            raise self._failure
        try:
            self._identity = self._derive()
        except Unauthorized as e:
            self._failure = e
            raise
        return self._identity

    def _derive(self) -> str:
        if not self._token:
            raise Unauthorized()
        try:
            payload = decode_token(self._token)
        except ExpiredSignatureError:
            raise Unauthorized("Token expired")
        except JWTError:
            raise Unauthorized()
        sub = payload.get("sub")
        if not sub:
            raise Unauthorized()
        return str(sub)

def get_identity_gate(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> IdentityGate:
    gate = getattr(request.state, "identity_gate", None)
    if gate is None:
        gate = IdentityGate(creds.credentials if creds else None)
        request.state.identity_gate = gate
    return gate

def get_current_identity(gate: IdentityGate = Depends(get_identity_gate)) -> str:
    return gate.resolve()
