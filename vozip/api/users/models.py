from typing import Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    user: Optional[str] = None
    password: Optional[str] = None


class SessionUser(BaseModel):
    id: int
    nombre: Optional[str] = None
    apellidos: Optional[str] = None
    funcion: Optional[str] = None
    permisos: list[str] = []


class LoginResponse(BaseModel):
    message: str
    token: str
    user: SessionUser


class MessageResponse(BaseModel):
    message: str
