from fastapi import APIRouter, HTTPException, Header
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import logging
import math
import secrets

from ..schemas.pydantic_schemas import (
    SignupRequest,
    SigninRequest,
    VerifyEmailRequest,
    ResendVerificationRequest,
    RefreshTokenRequest,
)
from ..config import env
from ..db import get_db
from ..services.auth_client import AuthError, get_auth
from ..services.email_service import is_valid_email, send_verification_email

# Set up logger
logger = logging.getLogger(__name__)

router = APIRouter()

TRIAL_CREDITS = 100
TRIAL_DAYS = 7
OTP_TTL = timedelta(minutes=10)
RESEND_COOLDOWN_SECONDS = 60


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def generate_otp() -> str:
    return str(100000 + secrets.randbelow(900000))


def _public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": user["id"],
        "email": user.get("email"),
        "email_confirmed": user.get("email_confirmed_at") is not None,
    }


def _bearer_token(authorization: Optional[str]) -> str:
    token = (authorization or "").replace("Bearer ", "").strip()
    if not token:
        raise HTTPException(status_code=401, detail="Access token is required")
    return token


def _issue_otp(db, user_id: str, email: str) -> str:
    code = generate_otp()
    db.create_otp(user_id, email, code, (_now() + OTP_TTL).isoformat())
    return code


async def _deliver_code(auth, email: str, code: str, full_name: Optional[str]) -> Optional[Exception]:
    """SMTP first, provider resend as fallback. Returns the SMTP error when both fail."""
    try:
        await send_verification_email(email, code, full_name)
        logger.info(f"Verification email sent via SMTP to {email}")
        return None
    except Exception as smtp_error:
        logger.error(f"Failed to send verification email via SMTP: {smtp_error}")
        try:
            auth.resend_signup(email)
            logger.info(f"Verification email sent via Supabase (fallback) to {email}")
            return None
        except Exception as fallback_error:
            logger.error(f"Supabase fallback also failed: {fallback_error}")
            return smtp_error


@router.post("/signup")
async def signup(payload: SignupRequest):
    if not payload.email or not payload.password or not payload.full_name or not payload.timezone:
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: email, password, fullName, and timezone are required",
        )
    if not is_valid_email(payload.email):
        raise HTTPException(status_code=400, detail="Invalid email format")
    if len(payload.password) < 6:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")

    auth = get_auth()
    db = get_db()
    logger.info(f"Signup requested for {payload.email}")

    try:
        user = auth.create_user(payload.email, payload.password, {
            "full_name": payload.full_name,
            "timezone": payload.timezone,
            "phone_number": payload.phone_number,
        })
    except AuthError as e:
        if "already" in e.message and ("registered" in e.message or "exists" in e.message):
            raise HTTPException(status_code=409, detail="An account with this email already exists")
        if "rate limit" in e.message or "over_email_send_rate_limit" in e.message:
            raise HTTPException(
                status_code=429,
                detail="Email rate limit exceeded. Please wait a few minutes before trying again.",
            )
        if e.status >= 500:
            raise HTTPException(status_code=500, detail=e.message)
        raise HTTPException(status_code=400, detail=e.message or "Failed to create account")

    now = _now()
    profile = {
        "user_id": user["id"],
        "email": user.get("email") or payload.email,
        "full_name": payload.full_name,
        "timezone": payload.timezone,
        "retell_api_key": env("RETELL_API_KEY") or None,
        "total_minutes_used": 0,
        "Total_credit": 0,
        "Remaning_credits": TRIAL_CREDITS,
        "is_deactivated": False,
        "payment_status": "unpaid",
        "trial_credits_expires_at": (now + timedelta(days=TRIAL_DAYS)).isoformat(),
        "last_activity_at": now.isoformat(),
    }
    if payload.phone_number:
        profile["phone_number"] = payload.phone_number
    try:
        db.upsert_profile(profile)
    except Exception as e:
        logger.warning(f"Profile creation warning for {user['id']}: {e}")

    code = _issue_otp(db, user["id"], payload.email)
    email_error = await _deliver_code(auth, payload.email, code, payload.full_name)
    if email_error is not None:
        logger.warning("Verification email was not sent during signup. User can request resend.")

    return {
        "success": True,
        "message": "Account created successfully. Please check your email for verification.",
        "user": _public_user(user),
    }


@router.post("/signin")
async def signin(payload: SigninRequest):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    auth = get_auth()
    try:
        user, session = auth.sign_in(payload.email, payload.password)
    except AuthError as e:
        if "Invalid login credentials" in e.message:
            raise HTTPException(status_code=401, detail="Invalid email or password")
        if "Email not confirmed" in e.message:
            raise HTTPException(status_code=403, detail="Please verify your email before signing in")
        raise HTTPException(status_code=400, detail=e.message or "Failed to sign in")

    profile = get_db().get_profile(user["id"])
    if profile and profile.get("is_deactivated"):
        try:
            auth.sign_out(session["access_token"])
        except AuthError as e:
            logger.warning(f"Could not revoke session for deactivated user {user['id']}: {e.message}")
        raise HTTPException(
            status_code=403,
            detail="Your account has been deactivated. Please contact support to reactivate your account.",
        )

    logger.info(f"User {user['id']} signed in")
    return {
        "success": True,
        "message": "Signed in successfully",
        "user": _public_user(user),
        "session": session,
    }


@router.post("/verify-email")
async def verify_email(payload: VerifyEmailRequest):
    email = (payload.email or "").strip()
    token = (payload.token or "").strip()
    if not email or not token:
        raise HTTPException(status_code=400, detail="Email and verification token are required")
    if not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Invalid email format")
    if len(token) != 6 or not token.isdigit():
        raise HTTPException(status_code=400, detail="Verification code must be 6 digits")

    auth = get_auth()
    db = get_db()
    user = auth.find_user_by_email(email)
    if not user:
        raise HTTPException(status_code=404, detail="No account found with this email address.")

    session = None
    latest = db.latest_otp(user["id"])
    if latest is None:
        logger.info("No OTP found in database, trying Supabase verification...")
        try:
            user, session = auth.verify_otp(email, token)
        except AuthError as e:
            message = e.message or "Failed to verify email"
            if "invalid" in message.lower() or "expired" in message.lower():
                raise HTTPException(
                    status_code=400,
                    detail="Invalid or expired verification code. Please request a new one.",
                )
            raise HTTPException(status_code=400, detail=message)
    else:
        otp = db.find_otp(user["id"], latest["email"], token)
        if otp is None:
            raise HTTPException(status_code=400, detail="Invalid verification code. Please check and try again.")
        if _parse_time(otp["expires_at"]) < _now():
            raise HTTPException(status_code=400, detail="Verification code has expired. Please request a new one.")
        if not db.consume_otp(otp["id"]):
            raise HTTPException(status_code=400, detail="Invalid verification code. Please check and try again.")
        try:
            auth.confirm_email(user["id"])
        except AuthError as e:
            logger.error(f"Failed to confirm email for {user['id']}: {e.message}")

    verified = auth.get_user_by_id(user["id"]) or user
    now = _now().isoformat()
    try:
        db.update_profile(user["id"], {"last_activity_at": now})
        db.log_activity(user["id"], "account_login", "Email verified successfully",
                        {"email": email, "verified_at": now})
    except Exception as e:
        logger.warning(f"Failed to record verification activity: {e}")

    return {
        "success": True,
        "message": "Email verified successfully",
        "user": _public_user(verified),
        "session": session,
    }


@router.post("/resend-verification")
async def resend_verification(payload: ResendVerificationRequest):
    email = (payload.email or "").strip()
    if not email:
        raise HTTPException(status_code=400, detail="Email is required")
    if not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    auth = get_auth()
    db = get_db()
    profile = db.get_profile_by_email(email.lower())
    user = auth.get_user_by_id(profile["user_id"]) if profile else None
    if user is None:
        user = auth.find_user_by_email(email)
    if user is None:
        raise HTTPException(status_code=404, detail="No account found with this email address. Please sign up first.")
    if user.get("email_confirmed_at"):
        raise HTTPException(status_code=400, detail="This email is already verified. You can sign in directly.")

    now = _now()
    latest = db.latest_otp(user["id"])
    if latest:
        ready_at = _parse_time(latest["created_at"]) + timedelta(seconds=RESEND_COOLDOWN_SECONDS)
        if ready_at > now:
            seconds_left = math.ceil((ready_at - now).total_seconds())
            raise HTTPException(status_code=429, detail={
                "error": f"Please wait {seconds_left} seconds before requesting another verification code.",
                "retryAfter": seconds_left,
            })

    full_name = (profile or db.get_profile(user["id"]) or {}).get("full_name") or ""
    code = _issue_otp(db, user["id"], email)
    email_error = await _deliver_code(auth, email, code, full_name)
    if email_error is not None:
        raise HTTPException(status_code=500, detail=str(email_error) or "Failed to send verification email.")

    try:
        db.log_activity(user["id"], "account_login", "Verification email resent",
                        {"email": email, "timestamp": now.isoformat()})
    except Exception as e:
        logger.warning(f"Failed to log resend activity for {email}: {e}")
    return {
        "success": True,
        "message": "Verification email sent successfully. Please check your inbox.",
        "data": {"email": email, "sentAt": now.isoformat()},
    }


@router.post("/refresh-token")
async def refresh_token(payload: RefreshTokenRequest):
    if not payload.refresh_token:
        raise HTTPException(status_code=400, detail="Refresh token is required")
    try:
        session = get_auth().refresh(payload.refresh_token)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=e.message or "Failed to refresh session")
    return {"success": True, "session": session}


@router.post("/signout")
async def signout(authorization: Optional[str] = Header(default=None)):
    token = _bearer_token(authorization)
    try:
        get_auth().sign_out(token)
    except AuthError as e:
        raise HTTPException(status_code=e.status if e.status == 401 else 400, detail=e.message or "Failed to sign out")
    return {"success": True, "message": "Signed out successfully"}


@router.get("/user")
async def current_user(authorization: Optional[str] = Header(default=None)):
    token = _bearer_token(authorization)
    user = get_auth().get_user(token)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return {
        "success": True,
        "user": _public_user(user),
        "profile": get_db().get_profile(user["id"]),
    }


@router.get("/test-email/{email}")
async def test_email(email: str):
    """Ask the auth provider to resend the signup email, for checking mail delivery."""
    if not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Invalid email format")
    try:
        get_auth().resend_signup(email)
    except AuthError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return {"success": True, "message": "Test email sent successfully", "email": email}
