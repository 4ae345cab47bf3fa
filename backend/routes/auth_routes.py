from fastapi import APIRouter, Depends

from backend.auth.dependencies import get_current_professional
from backend.models.user import User

router = APIRouter(tags=['auth'])


@router.get("/me")
def me(current_professional: User = Depends(get_current_professional)):
    return {
        "id": current_professional.subject,
        "email": current_professional.email,
        "name": current_professional.name,
    }
