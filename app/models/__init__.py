# Import all models here for easier access
from app.models.customer import Customer
from app.models.admin import Admin, AdminRoleEnum
from app.models.driver import Driver
from app.models.car import Car, CarStatusEnum
from app.models.booking import Booking, BookingStatusEnum, ACTIVE_BOOKING_STATUSES
from app.models.payment import Payment, PaymentMethodEnum
from app.models.refund import Refund, RefundTypeEnum
from app.models.extension import Extension, ExtensionStatusEnum
from app.models.transaction import Transaction
from app.models.verification import VerificationCode, PasswordResetToken
from app.models.waitlist import Waitlist, WaitlistStatusEnum, OPEN_WAITLIST_STATUSES
