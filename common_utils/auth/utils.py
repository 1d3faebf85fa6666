from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, List
import jwt
from passlib.context import CryptContext
from app.config import settings

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

CUSTOMER_PERMISSIONS = [
    {"module": "booking", "action": ["create", "read_own", "request"]},
    {"module": "payment", "action": ["submit", "read_own"]},
    {"module": "car", "action": ["read"]},
    {"module": "waitlist", "action": ["join", "read_own", "leave"]},
]

STAFF_PERMISSIONS = [
    {"module": "booking", "action": ["read", "approve", "release"]},
    {"module": "payment", "action": ["create", "read", "confirm"]},
    {"module": "refund", "action": ["read"]},
    {"module": "car", "action": ["read"]},
    {"module": "customer", "action": ["read"]},
    {"module": "driver", "action": ["read"]},
    {"module": "waitlist", "action": ["read"]},
]

ADMIN_PERMISSIONS = [
    {"module": "booking", "action": ["create", "read", "approve", "release", "auto_cancel"]},
    {"module": "payment", "action": ["create", "read", "confirm", "delete"]},
    {"module": "refund", "action": ["create", "read"]},
    {"module": "car", "action": ["create", "read", "update", "delete"]},
    {"module": "customer", "action": ["create", "read", "update", "delete"]},
    {"module": "driver", "action": ["create", "read", "update", "delete"]},
    {"module": "waitlist", "action": ["read", "manage"]},
]

DRIVER_PERMISSIONS = [
    {"module": "car", "action": ["read"]},
]

ROLE_PERMISSIONS: Dict[str, List[Dict]] = {
    "customer": CUSTOMER_PERMISSIONS,
    "staff": STAFF_PERMISSIONS,
    "admin": ADMIN_PERMISSIONS,
    "driver": DRIVER_PERMISSIONS,
}


def permissions_for(role: str) -> List[Dict]:
    return ROLE_PERMISSIONS.get(role, [])


def create_access_token(
    user_id: str,
    user_type: str = "customer",   # customer, admin, driver
    role: Optional[str] = None,    # admin or staff for admin accounts
    custom_claims: Optional[Dict] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    role = role or user_type
    to_encode = {
        "user_id": str(user_id),
        "token_type": "access",
        "user_type": user_type,
        "role": role,
        "permissions": permissions_for(role),
    }

    if custom_claims:
        to_encode.update(custom_claims)

    to_encode = {k: v for k, v in to_encode.items() if v is not None}

    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now})

    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Dict:
    """Decode and verify a token; jwt.ExpiredSignatureError and jwt.PyJWTError propagate."""
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognizable hash
        return False


def customer_scope(user_data: Dict) -> Optional[int]:
    """Customer id to restrict reads and writes to, or None for admin/staff tokens"""
    if user_data.get("user_type") == "customer":
        return int(user_data["user_id"])
    return None
