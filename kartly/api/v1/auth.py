# kartly/api/v1/auth.py
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from kartly.api.dependencies import get_email_service
from kartly.core.config import settings
from kartly.core.constants import VendorStatus
from kartly.core.logging import logger
from kartly.core.security import (
    create_access_token,
    create_password_reset_token,
    get_password_hash,
    reset_token_matches_password,
    vendor_id_from_reset_token,
    verify_password,
)
from kartly.db.database import get_db
from kartly.db.repositories.vendor_repository import VendorRepository
from kartly.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    VendorSummary,
)
from kartly.services.email_service import EmailService
from kartly.services.subscription_gate import SubscriptionGate

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register a vendor and start their trial subscription"""
    vendor_repo = VendorRepository(db)

    existing = await vendor_repo.get_by_email(request.email)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    vendor = await vendor_repo.create({
        "name": request.name,
        "shop_name": request.shop_name,
        "phone": request.phone,
        "email": request.email,
        "password_hash": get_password_hash(request.password),
        "status": VendorStatus.ACTIVE.value,
    })
    await SubscriptionGate(db).start_trial(vendor.id)
    await db.commit()

    logger.info("Vendor registered", extra={"vendor_id": vendor.id})

    return AuthResponse(
        access_token=create_access_token({"vendor_id": vendor.id}),
        vendor=VendorSummary.model_validate(vendor),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange email and password for an access token"""
    vendor = await VendorRepository(db).get_by_email(request.email)

    if not vendor or not verify_password(request.password, vendor.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid email or password"
        )

    if vendor.status == VendorStatus.SUSPENDED.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account suspended"
        )

    return AuthResponse(
        access_token=create_access_token({"vendor_id": vendor.id}),
        vendor=VendorSummary.model_validate(vendor),
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Email a password reset link.

    The response is the same whether or not the address is registered.
    """
    vendor = await VendorRepository(db).get_by_email(request.email)

    if vendor:
        token = create_password_reset_token(vendor.id, vendor.password_hash)
        background_tasks.add_task(
            email_service.send_password_reset_email,
            vendor.email,
            vendor.name,
            vendor.shop_name,
            f"{settings.FRONTEND_URL}/reset-password/{token}",
        )
        logger.info("Password reset requested", extra={"vendor_id": vendor.id})

    return MessageResponse(message="If that email is registered, a reset link has been sent.")


@router.post("/reset-password/{token}", response_model=MessageResponse)
async def reset_password(
    token: str,
    request: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """Set a new password using a reset link; each link works once"""
    vendor_id = vendor_id_from_reset_token(token)
    vendor = await VendorRepository(db).get(vendor_id) if vendor_id else None

    if not vendor or not reset_token_matches_password(token, vendor.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token"
        )

    vendor.password_hash = get_password_hash(request.new_password)
    await db.commit()

    logger.info("Password reset completed", extra={"vendor_id": vendor.id})

    return MessageResponse(message="Password has been reset. You can now log in.")
