from fastapi import APIRouter, Depends
from liftlog.deps.auth import get_current_identity

router = APIRouter(prefix="/auth", tags=["auth"])

@router.get("/me")
def me(identity: str = Depends(get_current_identity)):
    return {"user_id": identity}
