from .auth_schemas import (
    AdminUserResponse,
    CurrentUserResponse,
    ProfileResponse,
    ProfileUpdate,
    SigninResponse,
    SignupResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from .schemas import (
    DeleteWorkspaceResponse,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    TestEmailRequest,
    TestEmailResponse,
    WorkspaceResponse,
)

__all__ = [
    "UserRegister",
    "UserLogin",
    "UserResponse",
    "SigninResponse",
    "SignupResponse",
    "CurrentUserResponse",
    "ProfileResponse",
    "ProfileUpdate",
    "AdminUserResponse",
    "MessageResponse",
    "WorkspaceResponse",
    "DeleteWorkspaceResponse",
    "TestEmailRequest",
    "TestEmailResponse",
    "ErrorResponse",
    "HealthResponse",
]
