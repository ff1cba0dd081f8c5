from .user import PasswordChange, UserCreate, UserDetail, UserRead, UserUpdate
