# ── Auth ──────────────────────────────────────────────────────
from app.routes.auth_router import router as auth_router

# ── Accounts ──────────────────────────────────────────────────
from app.routes.customer_router import router as customer_router
from app.routes.driver_router import router as driver_router

# ── Fleet ─────────────────────────────────────────────────────
from app.routes.car_router import router as car_router

# ── Bookings & ledger ─────────────────────────────────────────
from app.routes.booking_router import router as booking_router
from app.routes.payment_router import router as payment_router
from app.routes.refund_router import router as refund_router
from app.routes.waitlist_router import router as waitlist_router
