from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sessionbook.models.mod_auth import AuthUser, UserRole, TokenData
from sessionbook.models.mod_booking import Booking
from sessionbook.configuration.config import Config
from sessionbook.validators.val_errors import AuthorizationError

# Tokens are issued by the identity provider; this service only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=Config.AUTH_TOKEN_URL)

def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

def verify_token(token: str) -> TokenData:
    """
    Verify the JWT token and extract its claims.
    Raises HTTPException if token is invalid or expired.
    """
    try:
        options = {"verify_aud": bool(Config.JWT_AUDIENCE)}
        payload = jwt.decode(
            token,
            Config.JWT_SECRET_KEY,
            algorithms=[Config.JWT_ALGORITHM],
            audience=Config.JWT_AUDIENCE,
            options=options,
        )
        user_id = payload.get("sub")
        if not user_id:
            raise _credentials_exception()
        return TokenData(
            id=user_id,
            role=payload.get("role", UserRole.CLIENT.value),
            trainer_id=payload.get("trainer_id"),
            client_id=payload.get("client_id"),
            exp=payload.get("exp"),
        )
    except JWTError:
        raise _credentials_exception()
    except ValueError:
        # Unknown role claim
        raise _credentials_exception()

def get_current_user(token: str = Depends(oauth2_scheme)) -> AuthUser:
    """
    Get the current authenticated user from the token.
    This is the main dependency to be used in protected endpoints.
    """
    token_data = verify_token(token)
    return AuthUser(
        id=token_data.id,
        role=token_data.role,
        trainer_id=token_data.trainer_id,
        client_id=token_data.client_id,
    )

def get_current_trainer(current_user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Dependency for endpoints that require trainer access"""
    if current_user.role not in [UserRole.TRAINER, UserRole.ADMIN]:
        raise AuthorizationError("trainer_required", "You don't have permission to perform this action")
    return current_user

def get_current_admin(current_user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Dependency for operational endpoints"""
    if current_user.role != UserRole.ADMIN:
        raise AuthorizationError("admin_required", "Only administrators can perform this action")
    return current_user

def get_current_client(current_user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Dependency for endpoints that create bookings"""
    if current_user.role != UserRole.CLIENT or not current_user.client_id:
        raise AuthorizationError("client_required", "Only clients can book sessions")
    return current_user

def ensure_booking_participant(current_user: AuthUser, booking: Booking):
    """The booking's client, its trainer, or an admin"""
    if current_user.role == UserRole.ADMIN:
        return
    if current_user.role == UserRole.TRAINER and booking.trainer_id == current_user.trainer_id:
        return
    if current_user.role == UserRole.CLIENT and booking.client_id == current_user.client_id:
        return
    raise AuthorizationError("not_participant", "You don't have permission to access this booking",
                             booking_id=booking.id)

def ensure_booking_trainer(current_user: AuthUser, booking: Booking):
    """The booking's own trainer, or an admin"""
    if current_user.role == UserRole.ADMIN:
        return
    if current_user.role == UserRole.TRAINER and booking.trainer_id == current_user.trainer_id:
        return
    raise AuthorizationError("not_booking_trainer", "Only the booking's trainer can perform this action",
                             booking_id=booking.id)

def ensure_trainer_access(current_user: AuthUser, trainer_id: str):
    if current_user.role == UserRole.ADMIN:
        return
    if current_user.role == UserRole.TRAINER and current_user.trainer_id == trainer_id:
        return
    raise AuthorizationError("not_trainer", "You can only manage your own schedule", trainer_id=trainer_id)

def ensure_client_access(current_user: AuthUser, client_id: str):
    if current_user.role == UserRole.ADMIN:
        return
    if current_user.role == UserRole.CLIENT and current_user.client_id == client_id:
        return
    raise AuthorizationError("not_client", "You can only view your own records", client_id=client_id)
